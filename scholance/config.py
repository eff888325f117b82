# scholance/config.py
import os
import logging
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))

# 프로젝트 루트의 .env 파일을 읽어 환경 변수로 등록합니다.
load_dotenv(os.path.join(basedir, '..', '.env'))


class Config:
    """애플리케이션 전역 설정. 모든 값은 환경 변수에서 읽어옵니다."""

    # --- Database ---
    DATABASE_URL = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, '..', 'scholance.db')

    # --- Object Storage (S3) ---
    S3_PROJECTS_BUCKET = os.environ.get('S3_PROJECTS_BUCKET') or 'dev-scholance-projects'
    S3_USERS_BUCKET = os.environ.get('S3_USERS_BUCKET') or 'dev-scholance-users'
    S3_REGION = os.environ.get('S3_REGION') or 'us-east-1'
    S3_ENDPOINT_URL = os.environ.get('S3_ENDPOINT_URL')

    # --- Authorization policy ---
    # 'any-manager': manage:project 스코프만 있으면 어떤 조직이든 수정 가능
    # 'liaison-only': 해당 조직의 liaison만 수정 가능
    ORGANIZATION_UPDATE_POLICY = os.environ.get('ORGANIZATION_UPDATE_POLICY') or 'any-manager'

    # --- Logging ---
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'


def configure_logging(level=None):
    """루트 로거에 콘솔 핸들러를 한 번만 등록합니다."""
    root = logging.getLogger()
    root.setLevel(level or Config.LOG_LEVEL)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s: %(message)s'))
        root.addHandler(handler)
