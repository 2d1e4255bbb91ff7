# scanlation_authz/utils/slug.py
import re
import unicodedata
import uuid

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str, max_length: int = 100, fallback: str = "item") -> str:
    """
    이름을 URL에 안전한 slug 후보로 변환합니다.

    발음 구별 기호를 제거하고 소문자로 바꾼 뒤, 영숫자가 아닌 문자열은 하이픈 하나로 치환합니다.
    앞뒤 하이픈을 제거하고 max_length로 자르며, 결과가 비어 있으면 fallback을 반환합니다.
    """
    if not name:
        return fallback
    normalized = unicodedata.normalize("NFKD", name)
    ascii_only = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    slug = _NON_ALNUM.sub("-", ascii_only.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or fallback


def random_suffix(length: int = 5) -> str:
    return uuid.uuid4().hex[:length]


def with_suffix(base: str, suffix: str, max_length: int) -> str:
    """base 뒤에 '-suffix'를 붙이되, 전체 길이가 max_length를 넘지 않도록 base를 자릅니다."""
    reserve = len(suffix) + 1
    trimmed = base[:max(max_length - reserve, 1)].rstrip("-") or base[:1]
    return f"{trimmed}-{suffix}"
