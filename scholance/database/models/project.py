from sqlalchemy import Column, String, Text, DateTime, JSON, func
from ..database import Base


class Project(Base):
    """
    조직이 게시한 프로젝트. 플랫폼의 중심 집합(aggregate)입니다.

    학생들의 제출물(entries), 보조 자료(supplementalResources), 댓글(comments),
    보상(reward)은 별도 테이블 없이 이 행의 JSON 컬럼에 문서 형태로 포함됩니다.
    하위 문서 하나를 바꾸더라도 항상 프로젝트 전체를 읽고-수정하고-저장합니다.
    """
    __tablename__ = "projects"
    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=False)
    full_description = Column(Text)
    category = Column(String)
    deadline = Column(DateTime)
    status = Column(String, nullable=False, index=True)
    liaison_id = Column(String, nullable=False, index=True)
    organization_id = Column(String, nullable=False, index=True)
    selected_student_id = Column(String)
    created_at = Column(DateTime, server_default=func.now())

    deliverables = Column(JSON, nullable=False, default=list)
    specs = Column(JSON, nullable=False, default=list)
    supplemental_resources = Column(JSON, nullable=False, default=list)
    comments = Column(JSON, nullable=False, default=list)
    entries = Column(JSON, nullable=False, default=list)
    reward = Column(JSON)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "fullDescription": self.full_description,
            "category": self.category,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "status": self.status,
            "liaison": self.liaison_id,
            "organization": self.organization_id,
            "selectedStudent": self.selected_student_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "deliverables": list(self.deliverables or []),
            "specs": list(self.specs or []),
            "supplementalResources": list(self.supplemental_resources or []),
            "comments": list(self.comments or []),
            "entries": list(self.entries or []),
            "reward": self.reward,
        }
