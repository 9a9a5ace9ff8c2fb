# controller/class_controller.py
from fastapi import APIRouter, Depends, File, UploadFile
from model.api import (
    ClassListResponse,
    CreateClassRequest,
    ImportResponse,
    MessageResponse,
    SaveStudentRequest,
    StudentsResponse,
    UpdateStudentRequest,
)
from service.class_service import ClassService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_class_service,
    rate_limiter,
)

class_router = APIRouter(dependencies=[Depends(rate_limiter)])


@class_router.get(InternalURIs.CLASSES, response_model=ClassListResponse)
async def list_classes(
    service: ClassService = Depends(get_class_service),
) -> ClassListResponse:
    return ClassListResponse(classes=await service.list_classes())


@class_router.post(InternalURIs.CLASSES, response_model=MessageResponse)
async def create_class(
    payload: CreateClassRequest,
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    await service.create_class(payload.className)
    return MessageResponse(message="Class created successfully")


@class_router.delete(InternalURIs.CLASS, response_model=MessageResponse)
async def delete_class(
    className: str,
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    await service.delete_class(className)
    return MessageResponse(message="Class deleted successfully")


@class_router.get(InternalURIs.STUDENTS, response_model=StudentsResponse)
async def list_students(
    className: str,
    service: ClassService = Depends(get_class_service),
) -> StudentsResponse:
    return StudentsResponse(students=await service.list_students(className))


@class_router.post(InternalURIs.STUDENTS, response_model=MessageResponse)
async def save_student(
    className: str,
    payload: SaveStudentRequest,
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    await service.save_student(className, payload)
    return MessageResponse(message="Student saved successfully")


@class_router.put(InternalURIs.STUDENT, response_model=MessageResponse)
async def update_student(
    className: str,
    studentName: str,
    payload: UpdateStudentRequest,
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    await service.update_student(className, studentName, payload)
    return MessageResponse(message="Student updated successfully")


@class_router.delete(InternalURIs.STUDENT, response_model=MessageResponse)
async def delete_student(
    className: str,
    studentName: str,
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    await service.delete_student(className, studentName)
    return MessageResponse(message="Student deleted successfully")


@class_router.post(
    InternalURIs.UPLOAD_EXCEL,
    response_model=ImportResponse,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_excel(
    className: str,
    file: UploadFile | None = File(None),
    service: ClassService = Depends(get_class_service),
) -> ImportResponse:
    return await service.import_spreadsheet(className, file)
