from sqlalchemy import Column, String, Float, Integer, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from infra.db.session import Base

class FileRecord(Base):
    __tablename__ = "files"
    id = Column(String, primary_key=True)
    type = Column(String, nullable=False)   # 'CV' | 'PROJECT_REPORT'
    path = Column(String, nullable=False)
    name = Column(String, nullable=False)
    extracted_text = Column(Text, nullable=False, default="")
    page_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

class JobRecord(Base):
    __tablename__ = "jobs"
    id = Column(String, primary_key=True)
    status = Column(String, nullable=False, default="QUEUED")
    job_title = Column(String, nullable=False)
    cv_file_id = Column(String, ForeignKey("files.id"), nullable=False)
    report_file_id = Column(String, ForeignKey("files.id"), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    result = relationship("JobResultRecord", back_populates="job", uselist=False,
                          cascade="all, delete-orphan")

class JobResultRecord(Base):
    __tablename__ = "job_results"
    job_id = Column(String, ForeignKey("jobs.id"), primary_key=True)
    cv_match_rate = Column(Float, nullable=False)
    cv_feedback = Column(Text, nullable=False)
    cv_scores = Column(JSON, nullable=False)
    project_score = Column(Float, nullable=False)
    project_feedback = Column(Text, nullable=False)
    project_scores = Column(JSON, nullable=False)
    overall_summary = Column(Text, nullable=False)
    llm_provider = Column(String, nullable=False)
    llm_model = Column(String, nullable=False)
    tokens_used = Column(Integer, nullable=False, default=0)
    processing_time_ms = Column(Integer, nullable=False, default=0)
    job = relationship("JobRecord", back_populates="result")
