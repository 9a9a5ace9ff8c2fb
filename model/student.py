# model/student.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from util.constants import SpreadsheetColumns as Col


def _alias(name: str, legacy: str) -> AliasChoices:
    # Records exported by the old JSON store still use the spreadsheet headers
    return AliasChoices(name, legacy)


class StudentInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schoolNo: str = Field(default="", validation_alias=_alias("schoolNo", Col.SCHOOL_NO))
    motherName: str = Field(
        default="", validation_alias=_alias("motherName", Col.MOTHER_NAME)
    )
    motherEmail: str = Field(
        default="", validation_alias=_alias("motherEmail", Col.MOTHER_EMAIL)
    )
    motherPhone: str = Field(
        default="", validation_alias=_alias("motherPhone", Col.MOTHER_PHONE)
    )
    fatherName: str = Field(
        default="", validation_alias=_alias("fatherName", Col.FATHER_NAME)
    )
    fatherEmail: str = Field(
        default="", validation_alias=_alias("fatherEmail", Col.FATHER_EMAIL)
    )
    fatherPhone: str = Field(
        default="", validation_alias=_alias("fatherPhone", Col.FATHER_PHONE)
    )

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, v: object) -> str:
        # Spreadsheet cells arrive as ints/floats/None
        if v is None:
            return ""
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v).strip()


class Roster(BaseModel):
    """A class roster in entry order; the order decides matching ties."""

    students: dict[str, StudentInfo] = Field(default_factory=dict)
