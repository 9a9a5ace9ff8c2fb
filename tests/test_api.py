"""HTTP API tests against an in-memory Redis"""

import asyncio
import io
import json
import zipfile
from urllib.parse import quote

import fitz
from fastapi import UploadFile

from controller.controller_dependencies import get_parse_service
from controller.parse_controller import stream_parse
from model.student import StudentInfo
from repository.class_repository import ClassRepository
from util.constants import SpreadsheetColumns as Col

V1 = "/api/v1"
CLASS = "9-A"


def _create_class(client, name=CLASS):
    return client.post(f"{V1}/classes", json={"className": name})


def _add_student(client, name, school_no, class_name=CLASS):
    return client.post(
        f"{V1}/classes/{class_name}/students",
        json={"studentName": name, "studentInfo": {"schoolNo": school_no}},
    )


def _parse(client, pdf, class_name=CLASS, session_id=None, stream=False):
    data = {"className": class_name}
    if session_id:
        data["sessionId"] = session_id
    url = f"{V1}/parse-pdf/stream" if stream else f"{V1}/parse-pdf"
    return client.post(
        url, data=data, files={"file": ("reports.pdf", pdf, "application/pdf")}
    )


def _roster(client):
    _create_class(client)
    _add_student(client, "Ali Veli", "5")
    _add_student(client, "Can Oz", "6")
    _add_student(client, "Deniz", "7")


class TestHealth:
    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"ok": True}


class TestClasses:
    def test_create_list_delete(self, client):
        assert _create_class(client).status_code == 200
        assert _create_class(client, "10-B").status_code == 200

        assert client.get(f"{V1}/classes").json() == {"classes": ["10-B", CLASS]}

        assert client.delete(f"{V1}/classes/10-B").status_code == 200
        assert client.get(f"{V1}/classes").json() == {"classes": [CLASS]}

    def test_duplicate_class(self, client):
        _create_class(client)

        res = _create_class(client)

        assert res.status_code == 400
        assert res.json()["detail"] == "Class already exists"

    def test_class_name_required(self, client):
        res = client.post(f"{V1}/classes", json={"className": "  "})

        assert res.status_code == 400

    def test_delete_class_drops_roster(self, client):
        _create_class(client)
        _add_student(client, "Ali Veli", "5")

        client.delete(f"{V1}/classes/{CLASS}")

        assert client.get(f"{V1}/classes/{CLASS}/students").json() == {"students": {}}


class TestStudents:
    def test_add_and_list(self, client):
        _create_class(client)
        _add_student(client, "Ali Veli", "5")
        _add_student(client, "Can Oz", "6")

        students = client.get(f"{V1}/classes/{CLASS}/students").json()["students"]

        assert list(students) == ["Ali Veli", "Can Oz"]
        assert students["Ali Veli"]["schoolNo"] == "5"

    def test_name_and_info_required(self, client):
        res = client.post(
            f"{V1}/classes/{CLASS}/students", json={"studentName": "Ali Veli"}
        )

        assert res.status_code == 400

    def test_rename_keeps_position(self, client):
        _create_class(client)
        _add_student(client, "Ali Veli", "5")
        _add_student(client, "Can Oz", "6")

        res = client.put(
            f"{V1}/classes/{CLASS}/students/{quote('Ali Veli')}",
            json={"newName": "Ali Veli Kaya", "studentInfo": {"schoolNo": "15"}},
        )

        assert res.status_code == 200
        students = client.get(f"{V1}/classes/{CLASS}/students").json()["students"]
        assert list(students) == ["Ali Veli Kaya", "Can Oz"]
        assert students["Ali Veli Kaya"]["schoolNo"] == "15"

    def test_delete_student(self, client):
        _create_class(client)
        _add_student(client, "Ali Veli", "5")

        res = client.delete(f"{V1}/classes/{CLASS}/students/{quote('Ali Veli')}")

        assert res.status_code == 200
        assert client.get(f"{V1}/classes/{CLASS}/students").json() == {"students": {}}

    def test_accepts_spreadsheet_keys(self, client):
        _create_class(client)
        client.post(
            f"{V1}/classes/{CLASS}/students",
            json={"studentName": "Ali Veli", "studentInfo": {Col.SCHOOL_NO: "5"}},
        )

        students = client.get(f"{V1}/classes/{CLASS}/students").json()["students"]

        assert students["Ali Veli"]["schoolNo"] == "5"


class TestExcelImport:
    def test_import_merges_into_class(self, client, make_xlsx):
        _create_class(client)
        _add_student(client, "Ali Veli", "5")
        data = make_xlsx(
            [Col.NAME, Col.SCHOOL_NO, Col.MOTHER_NAME],
            [["Can Oz", 6, "Ayla Oz"], ["Ali Veli", 55, ""], ["Eksik Numara", None, ""]],
        )

        res = client.post(
            f"{V1}/classes/{CLASS}/upload-excel",
            files={"file": ("roster.xlsx", data, "application/octet-stream")},
        )

        assert res.status_code == 200
        assert res.json()["count"] == 2
        students = client.get(f"{V1}/classes/{CLASS}/students").json()["students"]
        assert list(students) == ["Ali Veli", "Can Oz"]
        assert students["Ali Veli"]["schoolNo"] == "55"
        assert students["Can Oz"]["motherName"] == "Ayla Oz"

    def test_import_creates_class(self, client, make_xlsx):
        data = make_xlsx([Col.NAME, Col.SCHOOL_NO], [["Ali Veli", 5]])

        client.post(
            f"{V1}/classes/10-C/upload-excel",
            files={"file": ("roster.xlsx", data, "application/octet-stream")},
        )

        assert "10-C" in client.get(f"{V1}/classes").json()["classes"]

    def test_no_file(self, client):
        res = client.post(f"{V1}/classes/{CLASS}/upload-excel")

        assert res.status_code == 400
        assert res.json()["detail"] == "No file uploaded"

    def test_bad_spreadsheet(self, client):
        res = client.post(
            f"{V1}/classes/{CLASS}/upload-excel",
            files={"file": ("roster.xlsx", b"nope", "application/octet-stream")},
        )

        assert res.status_code == 400


class TestParse:
    def test_parse_summary(self, client, make_pdf):
        _roster(client)
        pdf = make_pdf(["Ali Veli", "kapak", "ALI VELI"])

        res = _parse(client, pdf)

        assert res.status_code == 200
        body = res.json()
        assert body["totalPages"] == 3
        assert body["foundCount"] == 2
        assert body["missingStudents"] == ["Can Oz"]
        assert body["missingCount"] == 1
        assert body["hasDuplicates"] is True
        assert [r["fileNameSchoolNo"] for r in body["reports"]] == ["5.pdf", "5_1.pdf"]
        assert [r["pageNumber"] for r in body["reports"]] == [1, 3]
        assert body["reports"][0]["matchedText"] == "Ali Veli"
        assert body["parseId"] and body["sessionId"]

    def test_stored_summary(self, client, make_pdf):
        _roster(client)
        body = _parse(client, make_pdf(["Can Oz"])).json()

        stored = client.get(f"{V1}/parses/{body['parseId']}").json()

        assert stored["className"] == CLASS
        assert stored["reports"] == body["reports"]

    def test_unknown_class(self, client, make_pdf):
        res = _parse(client, make_pdf(["Ali Veli"]), class_name="yok")

        assert res.status_code == 404

    def test_no_matchable_students(self, client, make_pdf):
        _create_class(client)
        _add_student(client, "Deniz", "7")

        res = _parse(client, make_pdf(["Deniz"]))

        assert res.status_code == 400
        assert "No valid students" in res.json()["detail"]

    def test_invalid_pdf(self, client):
        _roster(client)

        res = _parse(client, b"not a pdf at all")

        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid or unreadable PDF"

    def test_file_required(self, client):
        _roster(client)

        res = client.post(f"{V1}/parse-pdf", data={"className": CLASS})

        assert res.status_code == 400

    def test_new_parse_replaces_session_result(self, client, make_pdf):
        _roster(client)
        first = _parse(client, make_pdf(["Ali Veli"])).json()

        second = _parse(client, make_pdf(["Can Oz"]), session_id=first["sessionId"]).json()

        assert second["sessionId"] == first["sessionId"]
        assert client.get(f"{V1}/parses/{first['parseId']}").status_code == 404
        assert client.get(f"{V1}/parses/{second['parseId']}").status_code == 200

    def test_separate_sessions_do_not_interfere(self, client, make_pdf):
        _roster(client)
        first = _parse(client, make_pdf(["Ali Veli"])).json()

        _parse(client, make_pdf(["Can Oz"]))

        assert client.get(f"{V1}/parses/{first['parseId']}").status_code == 200

    def test_delete_parse(self, client, make_pdf):
        _roster(client)
        body = _parse(client, make_pdf(["Ali Veli"])).json()

        assert client.delete(f"{V1}/parses/{body['parseId']}").status_code == 200
        assert client.get(f"{V1}/parses/{body['parseId']}").status_code == 404
        assert client.delete(f"{V1}/parses/{body['parseId']}").status_code == 404


class TestStreamParse:
    def test_events(self, client, make_pdf):
        _roster(client)

        res = _parse(client, make_pdf(["Ali Veli", "", "Can Oz"]), stream=True)

        assert res.status_code == 200
        events = [json.loads(line) for line in res.text.splitlines() if line]
        kinds = [e["type"] for e in events]
        assert kinds[0] == "progress" and kinds[-1] == "done"
        assert kinds.count("report") == 2
        assert kinds.count("progress") == 4
        result = next(e["payload"] for e in events if e["type"] == "result")
        assert result["foundCount"] == 2
        assert result["missingStudents"] == []
        assert client.get(f"{V1}/parses/{result['parseId']}").status_code == 200

    def test_validation_happens_before_streaming(self, client):
        _roster(client)

        res = _parse(client, b"garbage", stream=True)

        assert res.status_code == 400

    def test_unread_stream_still_closes_document(self, redis_store, make_pdf):
        async def _run():
            await ClassRepository().put_students(
                CLASS, {"Ali Veli": StudentInfo(schoolNo="5")}
            )
            upload = UploadFile(
                file=io.BytesIO(make_pdf(["Ali Veli"])), filename="reports.pdf"
            )
            response = await stream_parse(
                file=upload, className=CLASS, sessionId=None, service=get_parse_service()
            )
            # body never iterated; only the response's background task runs
            await response.background()
            return response.background.func.__self__

        document = asyncio.run(_run())

        assert document.closed is True


class TestDownloads:
    def _parsed(self, client, make_pdf):
        _roster(client)
        return _parse(client, make_pdf(["Ali Veli", "Can Oz", "ali veli"])).json()

    def test_single_pdf(self, client, make_pdf):
        body = self._parsed(client, make_pdf)
        report = body["reports"][1]

        res = client.get(f"{V1}/parses/{body['parseId']}/reports/{report['id']}/pdf")

        assert res.status_code == 200
        assert res.headers["content-type"] == "application/pdf"
        assert quote("Can Oz.pdf") in res.headers["content-disposition"]
        with fitz.open(stream=res.content, filetype="pdf") as doc:
            assert doc.page_count == 1
            assert "Can Oz" in doc.load_page(0).get_text()

    def test_unknown_report(self, client, make_pdf):
        body = self._parsed(client, make_pdf)

        res = client.get(f"{V1}/parses/{body['parseId']}/reports/nope/pdf")

        assert res.status_code == 404

    def test_zip_by_school_number(self, client, make_pdf):
        body = self._parsed(client, make_pdf)

        res = client.get(f"{V1}/parses/{body['parseId']}/zip/schoolNo")

        assert res.status_code == 200
        with zipfile.ZipFile(io.BytesIO(res.content)) as zf:
            assert zf.namelist() == ["5.pdf", "6.pdf", "5_1.pdf"]

    def test_zip_by_name(self, client, make_pdf):
        body = self._parsed(client, make_pdf)

        res = client.get(f"{V1}/parses/{body['parseId']}/zip/name")

        with zipfile.ZipFile(io.BytesIO(res.content)) as zf:
            assert zf.namelist() == ["Ali Veli.pdf", "Can Oz.pdf", "Ali Veli_1.pdf"]

    def test_zip_unknown_mode(self, client, make_pdf):
        body = self._parsed(client, make_pdf)

        res = client.get(f"{V1}/parses/{body['parseId']}/zip/initials")

        assert res.status_code == 422

    def test_zip_unknown_parse(self, client):
        assert client.get(f"{V1}/parses/missing/zip/name").status_code == 404


class TestDeleteReport:
    def test_delete_keeps_totals(self, client, make_pdf):
        _roster(client)
        body = _parse(client, make_pdf(["Ali Veli", "Ali Veli", "kapak"])).json()
        parse_id = body["parseId"]
        dropped = body["reports"][1]["id"]

        res = client.delete(f"{V1}/parses/{parse_id}/reports/{dropped}")

        assert res.status_code == 200
        stored = client.get(f"{V1}/parses/{parse_id}").json()
        assert [r["id"] for r in stored["reports"]] == [body["reports"][0]["id"]]
        assert stored["totalPages"] == 3
        assert stored["hasDuplicates"] is True
        assert client.get(f"{V1}/parses/{parse_id}/reports/{dropped}/pdf").status_code == 404

    def test_delete_unknown_report(self, client, make_pdf):
        _roster(client)
        body = _parse(client, make_pdf(["Ali Veli"])).json()

        res = client.delete(f"{V1}/parses/{body['parseId']}/reports/nope")

        assert res.status_code == 404

    def test_zip_after_all_reports_deleted(self, client, make_pdf):
        _roster(client)
        body = _parse(client, make_pdf(["Ali Veli"])).json()
        client.delete(f"{V1}/parses/{body['parseId']}/reports/{body['reports'][0]['id']}")

        res = client.get(f"{V1}/parses/{body['parseId']}/zip/name")

        assert res.status_code == 404


class TestUploadLimit:
    def test_oversized_upload_is_rejected(self, client, make_pdf, monkeypatch):
        from config.settings import settings

        _roster(client)
        monkeypatch.setattr(settings, "MAX_FILE_MB", 0)

        res = _parse(client, make_pdf(["Ali Veli"]))

        assert res.status_code == 413
        assert res.json()["detail"]["error"] == "file_too_large"
