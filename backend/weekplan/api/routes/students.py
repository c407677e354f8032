import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from weekplan.api.deps import get_db, get_student_or_404
from weekplan.models.student import Student
from weekplan.schemas.student import StudentCreate, StudentOut, StudentUpdate
from weekplan.services.schedule_store import delete_student_records

router = APIRouter()
logger = logging.getLogger(__name__)


def next_student_id(db: Session) -> str:
    existing = db.execute(select(Student.id)).scalars().all()
    numeric = [int(item) for item in existing if item.isdecimal()]
    return str(max(numeric, default=0) + 1)


@router.get("/students", response_model=list[StudentOut])
def list_students(db: Session = Depends(get_db)) -> list[StudentOut]:
    students = db.execute(select(Student).order_by(Student.name.asc(), Student.id.asc())).scalars().all()
    return list(students)


@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreate, db: Session = Depends(get_db)) -> StudentOut:
    student_id = payload.id or next_student_id(db)
    if db.get(Student, student_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student id already exists")

    student = Student(id=student_id, **payload.model_dump(exclude={"id"}))
    db.add(student)
    db.commit()
    db.refresh(student)
    logger.info("Created student %s", student.id)
    return student


@router.get("/students/{student_id}", response_model=StudentOut)
def get_student(student_id: str, db: Session = Depends(get_db)) -> StudentOut:
    return get_student_or_404(db, student_id)


@router.put("/students/{student_id}", response_model=StudentOut)
def update_student(student_id: str, payload: StudentUpdate, db: Session = Depends(get_db)) -> StudentOut:
    student = get_student_or_404(db, student_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in data.items():
        setattr(student, key, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(student)
    return student


@router.delete("/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(student_id: str, db: Session = Depends(get_db)) -> Response:
    student = get_student_or_404(db, student_id)
    removed = delete_student_records(db, student_id)
    db.delete(student)
    db.commit()
    logger.info("Deleted student %s with %d schedule record(s)", student_id, removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
