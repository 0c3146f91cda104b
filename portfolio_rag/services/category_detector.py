"""
Keyword-based topic detection used to scope context retrieval.
"""

from typing import List

from ..models.core import Category

SKILLS_KEYWORDS = ('기술', '스택', '기술스택', '다룰 수 있', '사용 가능', '할 줄 아', '사용해', '언어', '프레임워크', 'react', 'next',
                   'typescript', 'javascript', 'vue', 'node', '개발 도구', '툴', 'tool', 'skill', '능력', '역량')

PROJECTS_KEYWORDS = ('프로젝트', '만든', '개발한', '작업한', '진행한', '참여한', '포트폴리오', '작품', 'project', '구현', '제작')

# "최근 프로젝트" means work at the current company
RECENCY_KEYWORDS = ('최근', '요즘', '현재')

PERSONAL_KEYWORDS = ('이름', '연락처', '이메일', '전화', '메일', '깃허브', 'github', '나이', '생년월일', '소개', '링크드인', 'linkedin',
                     '위치', '거주')


def detect_categories(query: str) -> List[str]:
    """Map a question to the profile categories it asks about.

    Args:
        query: Question text

    Returns:
        Category names in a fixed order; empty means every category is relevant
    """
    lowered = query.lower()
    categories = []

    if any(keyword in lowered for keyword in SKILLS_KEYWORDS):
        categories.append(Category.SKILLS.value)

    if any(keyword in lowered for keyword in PROJECTS_KEYWORDS):
        if any(keyword in lowered for keyword in RECENCY_KEYWORDS):
            categories.append(Category.EXPERIENCE.value)
        else:
            categories.append(Category.PROJECTS.value)

    if any(keyword in lowered for keyword in PERSONAL_KEYWORDS):
        categories.append(Category.PERSONAL.value)

    return categories
