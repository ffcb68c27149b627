import logging
from typing import Annotated, Dict, Iterator, List, Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Path, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from unirecords.config.settings import settings
from unirecords.core.grades import InvalidGradeInput, StudentCategory
from unirecords.models.entities import User
from unirecords.services.records_service import (
    NotFoundError,
    PermissionDeniedError,
    RecordsService,
    RecordsServiceError,
)
from unirecords.services.storage import SQLITE_MAX_INT, StorageError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="UniRecords API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=settings.cors_allow_origin_regex or None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Category = Literal["engineering", "management"]
RecordId = Annotated[int, Path(ge=1, le=SQLITE_MAX_INT)]
RowInt = Annotated[int, Field(ge=0, le=SQLITE_MAX_INT)]


class SignUpPayload(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    name: Optional[str] = None


class LoginPayload(BaseModel):
    email: str
    password: str


class StudentPayload(BaseModel):
    student_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: Category
    enrollment_year: RowInt
    major: Optional[str] = None
    user_id: Optional[RowInt] = None


class StudentUpdatePayload(BaseModel):
    student_id: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[Category] = None
    enrollment_year: Optional[RowInt] = None
    major: Optional[str] = None
    user_id: Optional[RowInt] = None


class CoursePayload(BaseModel):
    course_code: str = Field(min_length=1)
    course_name: str = Field(min_length=1)
    credits: int = Field(ge=1)
    description: Optional[str] = None


class EnrollPayload(BaseModel):
    course_id: RowInt


class GradePayload(BaseModel):
    grade: int = Field(ge=0, le=100)


def get_records_service() -> Iterator[RecordsService]:
    service = RecordsService.from_settings()
    try:
        yield service
    finally:
        service.storage.close()


def current_user(
    x_user_id: Optional[str] = Header(default=None),
    service: RecordsService = Depends(get_records_service),
) -> User:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing x-user-id header")
    try:
        user = service.storage.get_user(int(x_user_id))
    except (ValueError, OverflowError):
        user = None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, InvalidGradeInput):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


SERVICE_ERRORS = (RecordsServiceError, StorageError, InvalidGradeInput)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/auth/signup")
def sign_up(payload: SignUpPayload, service: RecordsService = Depends(get_records_service)) -> Dict:
    try:
        uid = service.storage.create_user(payload.email, payload.password, name=payload.name)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered") from exc
    user = service.storage.get_user(uid)
    return {"uid": user.id, "email": user.email, "role": user.role}


@app.post("/auth/login")
def login(payload: LoginPayload, service: RecordsService = Depends(get_records_service)) -> Dict:
    uid = service.storage.login_user(payload.email, payload.password)
    if uid is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    user = service.storage.get_user(uid)
    return {"uid": user.id, "email": user.email, "role": user.role}


@app.get("/auth/me")
def me(user: User = Depends(current_user)) -> Dict:
    return {"uid": user.id, "email": user.email, "name": user.name, "role": user.role}


@app.get("/students/me")
def my_student(
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Optional[Dict]:
    student = service.my_student(user)
    return student.as_dict() if student else None


@app.get("/students")
def list_students(
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> List[Dict]:
    try:
        return [s.as_dict() for s in service.list_students(user)]
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.post("/students")
def create_student(
    payload: StudentPayload,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        student = service.create_student(
            user,
            student_number=payload.student_id,
            name=payload.name,
            category=StudentCategory(payload.type),
            enrollment_year=payload.enrollment_year,
            major=payload.major,
            user_id=payload.user_id,
        )
        return student.as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/students/{student_id}")
def get_student(
    student_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.get_student(user, student_id).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.patch("/students/{student_id}")
def update_student(
    student_id: RecordId,
    payload: StudentUpdatePayload,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    data = payload.model_dump(exclude_unset=True)
    renames = {"student_id": "student_number", "type": "category"}
    fields = {renames.get(key, key): value for key, value in data.items()}
    try:
        return service.update_student(user, student_id, **fields).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.delete("/students/{student_id}")
def delete_student(
    student_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict[str, str]:
    try:
        service.delete_student(user, student_id)
        return {"status": "deleted"}
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/courses")
def list_courses(
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> List[Dict]:
    return [c.as_dict() for c in service.list_courses(user)]


@app.post("/courses")
def create_course(
    payload: CoursePayload,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.create_course(user, **payload.model_dump()).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/courses/{course_id}")
def get_course(
    course_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.get_course(user, course_id).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/students/{student_id}/enrollments")
def list_enrollments(
    student_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> List[Dict]:
    try:
        return [
            {"enrollment": enrollment.as_dict(), "course": course.as_dict()}
            for enrollment, course in service.list_enrollments(user, student_id)
        ]
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.post("/students/{student_id}/enrollments")
def enroll(
    student_id: RecordId,
    payload: EnrollPayload,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.enroll(user, student_id, payload.course_id).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.delete("/enrollments/{enrollment_id}")
def unenroll(
    enrollment_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict[str, str]:
    try:
        service.unenroll(user, enrollment_id)
        return {"status": "deleted"}
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/students/{student_id}/grades")
def list_grades(
    student_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> List[Dict]:
    try:
        return [
            {"grade": grade.as_dict(), "course": course.as_dict()}
            for grade, course in service.list_grades(user, student_id)
        ]
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.put("/enrollments/{enrollment_id}/grade")
def set_grade(
    enrollment_id: RecordId,
    payload: GradePayload,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.set_grade(user, enrollment_id, payload.grade).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/students/{student_id}/gpa")
def calculate_gpa(
    student_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.calculate_gpa(user, student_id).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc


@app.get("/students/{student_id}/transcript")
def transcript(
    student_id: RecordId,
    user: User = Depends(current_user),
    service: RecordsService = Depends(get_records_service),
) -> Dict:
    try:
        return service.transcript(user, student_id).as_dict()
    except SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc
