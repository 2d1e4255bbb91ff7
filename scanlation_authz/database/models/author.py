from sqlalchemy import Column, Integer, String, ForeignKey
from ..database import Base

class Author(Base):
    """
    작품에 크레딧되는 작가/아티스트 프로필입니다. 크레딧은 편집 권한을 부여하지 않습니다.
    user_id가 있으면 해당 사용자의 셀프서비스 프로필입니다.
    """
    __tablename__ = "authors"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    bio = Column(String)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True)
