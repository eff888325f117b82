from sqlalchemy import Column, String, Text, JSON
from ..database import Base


class Organization(Base):
    """
    프로젝트를 게시하는 기업/기관을 나타냅니다.
    liaisons는 이 조직의 프로젝트를 관리할 수 있는 사용자 ID의 집합이며, 중복을 허용하지 않습니다.
    """
    __tablename__ = "organizations"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    domain = Column(String, nullable=False, index=True)
    industry = Column(String)
    twitter = Column(String)
    linkedin = Column(String)
    about = Column(Text)
    logo = Column(String)

    liaisons = Column(JSON, nullable=False, default=list)

    PROFILE_FIELDS = ("name", "domain", "industry", "twitter", "linkedin", "about", "logo")

    def to_dict(self):
        data = {"id": self.id}
        for field in self.PROFILE_FIELDS:
            data[field] = getattr(self, field)
        data["liaisons"] = list(self.liaisons or [])
        return data
