# app/db/models/concept.py
from uuid import uuid4

from sqlalchemy import Column, Integer, String
from app.db.base import Base


class ConceptModel(Base):
    __tablename__ = "concepts"

    id = Column(Integer, primary_key=True)
    uuid = Column(String(38), unique=True, nullable=False, index=True,
                  default=lambda: str(uuid4()))
    name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Concept {self.id}: {self.name}>"
