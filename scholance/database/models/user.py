from sqlalchemy import Column, String, Text, JSON
from ..database import Base


class User(Base):
    """
    플랫폼 사용자(학생 또는 기업 담당자)를 나타냅니다.
    id는 인증 제공자(principal id의 두 번째 부분)가 발급한 사용자 ID를 그대로 사용합니다.
    참여한 프로젝트 목록과 완료된 프로젝트의 포트폴리오 스냅샷을 문서 안에 포함합니다.
    """
    __tablename__ = "users"
    id = Column(String, primary_key=True, index=True)
    name = Column(String)
    user_type = Column(String, nullable=False)
    email = Column(String, nullable=False)
    photo = Column(String)
    about = Column(Text)
    organization_id = Column(String, index=True)
    position = Column(String)
    school = Column(String)
    academic_focus = Column(String)
    interests = Column(String)
    linkedin = Column(String)
    twitter = Column(String)
    instagram = Column(String)
    website = Column(String)

    projects = Column(JSON, nullable=False, default=list)
    portfolio_entries = Column(JSON, nullable=False, default=list)

    # 요청 본문의 camelCase 필드 -> 모델 속성
    PROFILE_FIELDS = {
        "name": "name",
        "userType": "user_type",
        "email": "email",
        "photo": "photo",
        "about": "about",
        "position": "position",
        "school": "school",
        "academicFocus": "academic_focus",
        "interests": "interests",
        "linkedin": "linkedin",
        "twitter": "twitter",
        "instagram": "instagram",
        "website": "website",
    }

    def to_dict(self):
        data = {"id": self.id}
        for field, attr in self.PROFILE_FIELDS.items():
            data[field] = getattr(self, attr)
        data["organization"] = self.organization_id
        data["projects"] = list(self.projects or [])
        data["portfolioEntries"] = list(self.portfolio_entries or [])
        return data
