# scanlation_authz/app.py
from wsgiref.simple_server import make_server
import json
import logging
import re

from pydantic import ValidationError

# SQLAlchemy 및 의존성 임포트
from scanlation_authz import schemas
from scanlation_authz.config import settings
from scanlation_authz.database.database import SessionLocal
from scanlation_authz.database.db_init import initialize_db
from scanlation_authz.repositories.sqlalchemy.unit_of_work import SqlalchemyUnitOfWork
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_user_repository import SqlalchemyUserRepository
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_role_repository import SqlalchemyRoleRepository
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_permission_repository import SqlalchemyPermissionRepository
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_group_repository import (
    SqlalchemyGroupRepository, SqlalchemyGroupMemberRepository, SqlalchemyGroupInviteRepository
)
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_work_repository import SqlalchemyWorkRepository
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_chapter_repository import SqlalchemyChapterRepository
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_author_repository import SqlalchemyAuthorRepository
from scanlation_authz.repositories.sqlalchemy.sqlalchemy_activity_log_repository import SqlalchemyActivityLogRepository
from scanlation_authz.services.activity_service import ActivityService
from scanlation_authz.services.author_service import AuthorService
from scanlation_authz.services.chapter_service import ChapterService
from scanlation_authz.services.claim_service import ClaimService
from scanlation_authz.services.group_service import GroupService
from scanlation_authz.services.membership_service import MembershipService
from scanlation_authz.services.permission_catalog import Permission
from scanlation_authz.services.permission_service import PermissionService
from scanlation_authz.services.role_service import RoleService
from scanlation_authz.services.slug_service import SlugService, SlugScope
from scanlation_authz.services.work_service import WorkService
from scanlation_authz.services.exceptions import *

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ, schema):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise InvalidInputError("Invalid or missing JSON body.")
    return schema.model_validate(data)

def get_principal(environ):
    """
    외부 세션 서비스가 인증한 사용자 ID를 'X-User-Id' 헤더에서 읽습니다.
    """
    user_id = environ.get('HTTP_X_USER_ID')
    if not user_id:
        raise UnauthenticatedError("Missing 'X-User-Id' header.")
    try:
        return int(user_id)
    except ValueError:
        raise UnauthenticatedError("Invalid 'X-User-Id' header.")

# 먼저 일치하는 항목이 적용되므로, 하위 클래스를 상위 클래스보다 앞에 둡니다.
error_map = [
    (UnauthenticatedError, "401 Unauthorized"),
    (ForbiddenError, "403 Forbidden"),
    (NotFoundError, "404 Not Found"),
    (ConflictError, "409 Conflict"),
    (ValidationError, "400 Bad Request"),
    (InvalidInputError, "400 Bad Request"),
]

def handle_exception(e):
    for error_type, status in error_map:
        if isinstance(e, error_type):
            if isinstance(e, ValidationError):
                body = {"error": "Invalid request body.", "details": e.errors(include_url=False)}
            else:
                body = {"error": str(e)}
            return status, json.dumps(body, default=str)

    logger.error("Unhandled error while processing request.", exc_info=e)
    return "500 Internal Server Error", json.dumps({"error": "Internal Server Error"})

def build_services(db_session):
    """요청 단위로 리포지토리와 서비스를 생성합니다."""
    user_repo = SqlalchemyUserRepository(db_session)
    role_repo = SqlalchemyRoleRepository(db_session)
    permission_repo = SqlalchemyPermissionRepository(db_session)
    group_repo = SqlalchemyGroupRepository(db_session)
    member_repo = SqlalchemyGroupMemberRepository(db_session)
    invite_repo = SqlalchemyGroupInviteRepository(db_session)
    work_repo = SqlalchemyWorkRepository(db_session)
    chapter_repo = SqlalchemyChapterRepository(db_session)
    author_repo = SqlalchemyAuthorRepository(db_session)
    activity_repo = SqlalchemyActivityLogRepository(db_session)
    uow = SqlalchemyUnitOfWork(db_session)

    permission_service = PermissionService(role_repo, permission_repo)
    membership_service = MembershipService(member_repo)
    activity_service = ActivityService(activity_repo)
    slug_service = SlugService({
        SlugScope.WORK: work_repo,
        SlugScope.GROUP: group_repo,
        SlugScope.AUTHOR: author_repo,
    })
    claim_service = ClaimService(work_repo, group_repo, membership_service, permission_service, activity_service, uow)

    return {
        'permission': permission_service,
        'activity': activity_service,
        'claim': claim_service,
        'chapter': ChapterService(chapter_repo, work_repo, group_repo, claim_service, activity_service, uow),
        'group': GroupService(group_repo, member_repo, invite_repo, user_repo, membership_service,
                              permission_service, slug_service, activity_service, uow),
        'work': WorkService(work_repo, group_repo, claim_service, membership_service, permission_service,
                            slug_service, activity_service, uow),
        'author': AuthorService(author_repo, user_repo, membership_service, permission_service,
                                slug_service, activity_service, uow),
        'role': RoleService(role_repo, permission_repo, user_repo, permission_service, activity_service, uow),
    }

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def application(environ, start_response):
    db_session = SessionLocal()
    try:
        # 1. 의존성 생성 후 environ을 통해 핸들러에 전달
        environ['services'] = build_services(db_session)

        # 2. 라우팅 및 핸들러 실행
        path = environ.get("PATH_INFO", "")
        method = environ.get("REQUEST_METHOD", "")

        handler, path_args = None, []
        for route_method, pattern, route_handler in routes:
            if method == route_method and (match := re.match(pattern, path)):
                handler, path_args = route_handler, match.groups()
                break

        if handler:
            status, response_body = handler(environ, *path_args)
        else:
            status, response_body = '404 Not Found', json.dumps({'error': 'Not Found'})

    except Exception as e:
        status, response_body = handle_exception(e)
    finally:
        db_session.close()

    start_response(status, [("Content-Type", "application/json")])
    return [response_body.encode("utf-8")]

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

# --- Groups ---
def create_group_handler(environ, *args):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.GroupCreate)
    group = environ['services']['group'].create_group(user_id, **data.model_dump())
    return '201 Created', json.dumps(group)

def get_group_handler(environ, group_id):
    group = environ['services']['group'].get_group(int(group_id))
    return '200 OK', json.dumps(group)

def update_group_handler(environ, group_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.GroupUpdate)
    group = environ['services']['group'].update_group(user_id, int(group_id), **data.model_dump())
    return '200 OK', json.dumps(group)

def delete_group_handler(environ, group_id):
    user_id = get_principal(environ)
    environ['services']['group'].delete_group(user_id, int(group_id))
    return '204 No Content', ''

def list_members_handler(environ, group_id):
    user_id = get_principal(environ)
    members = environ['services']['group'].list_members(user_id, int(group_id))
    return '200 OK', json.dumps({"members": members})

def set_member_handler(environ, group_id, member_user_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.MemberSet)
    member = environ['services']['group'].set_member(user_id, int(group_id), int(member_user_id), data.role)
    return '200 OK', json.dumps(member)

def remove_member_handler(environ, group_id, member_user_id):
    user_id = get_principal(environ)
    environ['services']['group'].remove_member(user_id, int(group_id), int(member_user_id))
    return '204 No Content', ''

def create_invite_handler(environ, group_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.InviteCreate)
    invite = environ['services']['group'].create_invite(user_id, int(group_id), data.email)
    return '201 Created', json.dumps(invite)

def list_invites_handler(environ, group_id):
    user_id = get_principal(environ)
    invites = environ['services']['group'].list_invites(user_id, int(group_id))
    return '200 OK', json.dumps({"invites": invites})

def accept_invite_handler(environ, token):
    user_id = get_principal(environ)
    member = environ['services']['group'].accept_invite(user_id, token)
    return '200 OK', json.dumps(member)

# --- Works / Claims ---
def create_work_handler(environ, *args):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.WorkCreate)
    work = environ['services']['work'].create_work(user_id, **data.model_dump())
    return '201 Created', json.dumps(work)

def get_work_handler(environ, work_id):
    work = environ['services']['work'].get_work(int(work_id))
    return '200 OK', json.dumps(work)

def update_work_handler(environ, work_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.WorkUpdate)
    work = environ['services']['work'].update_work(user_id, int(work_id), **data.model_dump())
    return '200 OK', json.dumps(work)

def delete_work_handler(environ, work_id):
    user_id = get_principal(environ)
    environ['services']['work'].delete_work(user_id, int(work_id))
    return '204 No Content', ''

def list_claims_handler(environ, work_id):
    group_ids = environ['services']['claim'].list_claims(int(work_id))
    return '200 OK', json.dumps({"group_ids": group_ids})

def claim_work_handler(environ, work_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.ClaimCreate)
    claim = environ['services']['claim'].claim_work(user_id, int(work_id), data.group_id)
    return ('201 Created' if claim['created'] else '200 OK'), json.dumps(claim)

# --- Chapters ---
def list_chapters_handler(environ, work_id):
    chapters = environ['services']['chapter'].list_chapters(int(work_id))
    return '200 OK', json.dumps({"chapters": chapters})

def create_chapters_handler(environ, work_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.ChapterBatchCreate)
    chapters = environ['services']['chapter'].create_chapter_batch(user_id, int(work_id), **data.model_dump())
    return '201 Created', json.dumps({"chapters": chapters})

def update_chapter_handler(environ, chapter_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.ChapterUpdate)
    chapter = environ['services']['chapter'].update_chapter(user_id, int(chapter_id), **data.model_dump())
    return '200 OK', json.dumps(chapter)

def delete_chapter_handler(environ, chapter_id):
    user_id = get_principal(environ)
    environ['services']['chapter'].delete_chapter(user_id, int(chapter_id))
    return '204 No Content', ''

# --- Authors ---
def create_author_handler(environ, *args):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.AuthorCreate)
    author = environ['services']['author'].create_author(user_id, data.name, data.bio)
    return '201 Created', json.dumps(author)

def ensure_self_author_handler(environ, *args):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.SelfAuthorCreate)
    author = environ['services']['author'].ensure_self_author(user_id, data.bio)
    return ('201 Created' if author['created'] else '200 OK'), json.dumps(author)

# --- Roles ---
def list_roles_handler(environ, *args):
    user_id = get_principal(environ)
    roles = environ['services']['role'].list_roles(user_id)
    return '200 OK', json.dumps({"roles": roles})

def create_role_handler(environ, *args):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.RoleCreate)
    role = environ['services']['role'].create_role(user_id, **data.model_dump())
    return '201 Created', json.dumps(role)

def update_role_handler(environ, role_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.RoleUpdate)
    role = environ['services']['role'].update_role(user_id, int(role_id), **data.model_dump())
    return '200 OK', json.dumps(role)

def delete_role_handler(environ, role_id):
    user_id = get_principal(environ)
    environ['services']['role'].delete_role(user_id, int(role_id))
    return '204 No Content', ''

def get_role_permissions_handler(environ, role_id):
    user_id = get_principal(environ)
    permissions = environ['services']['role'].get_role_permissions(user_id, int(role_id))
    return '200 OK', json.dumps({"permissions": permissions})

def set_role_permissions_handler(environ, role_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.RolePermissionsSet)
    permissions = environ['services']['role'].set_role_permissions(user_id, int(role_id), data.permissions)
    return '200 OK', json.dumps({"permissions": permissions})

def assign_user_role_handler(environ, target_user_id):
    user_id = get_principal(environ)
    data = get_request_data(environ, schemas.UserRoleAssign)
    result = environ['services']['role'].assign_user_role(user_id, int(target_user_id), data.role_id)
    return '200 OK', json.dumps(result)

# --- Activity ---
def my_activity_handler(environ, *args):
    user_id = get_principal(environ)
    logs = environ['services']['activity'].list_user_activity(user_id)
    return '200 OK', json.dumps({"activity": logs})

def entity_activity_handler(environ, entity_type, entity_id):
    user_id = get_principal(environ)
    environ['services']['permission'].require_permission(user_id, Permission.SYSTEM_LOGS)
    logs = environ['services']['activity'].list_entity_activity(entity_type, int(entity_id))
    return '200 OK', json.dumps({"activity": logs})


routes = [
    ('POST', r'^/v1/groups$', create_group_handler),
    ('GET', r'^/v1/groups/([0-9]+)$', get_group_handler),
    ('PATCH', r'^/v1/groups/([0-9]+)$', update_group_handler),
    ('DELETE', r'^/v1/groups/([0-9]+)$', delete_group_handler),
    ('GET', r'^/v1/groups/([0-9]+)/members$', list_members_handler),
    ('PUT', r'^/v1/groups/([0-9]+)/members/([0-9]+)$', set_member_handler),
    ('DELETE', r'^/v1/groups/([0-9]+)/members/([0-9]+)$', remove_member_handler),
    ('POST', r'^/v1/groups/([0-9]+)/invites$', create_invite_handler),
    ('GET', r'^/v1/groups/([0-9]+)/invites$', list_invites_handler),
    ('POST', r'^/v1/invites/([a-zA-Z0-9-]+)/accept$', accept_invite_handler),
    ('POST', r'^/v1/works$', create_work_handler),
    ('GET', r'^/v1/works/([0-9]+)$', get_work_handler),
    ('PATCH', r'^/v1/works/([0-9]+)$', update_work_handler),
    ('DELETE', r'^/v1/works/([0-9]+)$', delete_work_handler),
    ('GET', r'^/v1/works/([0-9]+)/claims$', list_claims_handler),
    ('POST', r'^/v1/works/([0-9]+)/claims$', claim_work_handler),
    ('GET', r'^/v1/works/([0-9]+)/chapters$', list_chapters_handler),
    ('POST', r'^/v1/works/([0-9]+)/chapters$', create_chapters_handler),
    ('PATCH', r'^/v1/chapters/([0-9]+)$', update_chapter_handler),
    ('DELETE', r'^/v1/chapters/([0-9]+)$', delete_chapter_handler),
    ('POST', r'^/v1/authors$', create_author_handler),
    ('POST', r'^/v1/authors/me$', ensure_self_author_handler),
    ('GET', r'^/v1/roles$', list_roles_handler),
    ('POST', r'^/v1/roles$', create_role_handler),
    ('PATCH', r'^/v1/roles/([0-9]+)$', update_role_handler),
    ('DELETE', r'^/v1/roles/([0-9]+)$', delete_role_handler),
    ('GET', r'^/v1/roles/([0-9]+)/permissions$', get_role_permissions_handler),
    ('PUT', r'^/v1/roles/([0-9]+)/permissions$', set_role_permissions_handler),
    ('PUT', r'^/v1/users/([0-9]+)/role$', assign_user_role_handler),
    ('GET', r'^/v1/me/activity$', my_activity_handler),
    ('GET', r'^/v1/activity/([a-z_]+)/([0-9]+)$', entity_activity_handler),
]

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

def boot():
    """테이블과 카탈로그를 준비하고, 시드된 권한 카탈로그가 열거형과 일치하는지 검증합니다."""
    initialize_db()
    db_session = SessionLocal()
    try:
        PermissionService(SqlalchemyRoleRepository(db_session), SqlalchemyPermissionRepository(db_session)).validate_catalog()
    finally:
        db_session.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    boot()
    with make_server(settings.HOST, settings.PORT, application) as httpd:
        logger.info("Serving scanlation-authz on port %d...", settings.PORT)
        httpd.serve_forever()
