from sqlalchemy.orm import Session
from backend.models import Subject
from backend.schemas import SubjectCreate
from typing import List, Optional

def create_subject(db: Session, user_id: int, subject: SubjectCreate) -> Subject:
    """Create a subject for a user"""
    db_subject = Subject(user_id=user_id, **subject.model_dump())
    db.add(db_subject)
    db.commit()
    db.refresh(db_subject)
    return db_subject

def get_subjects(db: Session, user_id: int) -> List[Subject]:
    """Get all subjects of a user"""
    return db.query(Subject).filter(Subject.user_id == user_id).order_by(Subject.id).all()

def delete_subject(db: Session, user_id: int, subject_id: int) -> bool:
    """Delete a subject and all of its topics"""
    db_subject = db.query(Subject).filter(
        Subject.id == subject_id,
        Subject.user_id == user_id
    ).first()
    if not db_subject:
        return False
    db.delete(db_subject)
    db.commit()
    return True
