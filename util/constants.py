class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    CLASSES = V1 + "/classes"
    CLASS = CLASSES + "/{className}"
    STUDENTS = CLASS + "/students"
    STUDENT = STUDENTS + "/{studentName}"
    UPLOAD_EXCEL = CLASS + "/upload-excel"
    PARSE_PDF = V1 + "/parse-pdf"
    STREAM_PARSE = PARSE_PDF + "/stream"
    PARSE = V1 + "/parses/{parseId}"
    REPORT = PARSE + "/reports/{reportId}"
    REPORT_PDF = REPORT + "/pdf"
    ZIP = PARSE + "/zip/{namingMode}"


class SpreadsheetColumns:
    """Header row of the roster spreadsheet exported by the school office."""

    NAME = "Ad Soyad"
    SCHOOL_NO = "Okul No"
    MOTHER_NAME = "Anne Adı Soyadı"
    MOTHER_EMAIL = "Anne E-posta"
    MOTHER_PHONE = "Anne Telefon"
    FATHER_NAME = "Baba Adı Soyadı"
    FATHER_EMAIL = "Baba E-posta"
    FATHER_PHONE = "Baba Telefon"
