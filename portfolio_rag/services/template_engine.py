"""
Template rendering and template data assembly from profile records.
"""

import re
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..models.core import PLACEHOLDER_PATTERN, Career, Skill, TemplateData
from ..utils.logging_config import get_logger
from .profile_store import ProfileStore

logger = get_logger(__name__)

NOT_APPLICABLE_MARKERS = ('없음', '없습니다')
EMPTY_LABEL_LINE = re.compile(r'^\*\*[^*]+\*\*:\s*$')
NOT_APPLICABLE_LABEL_LINE = re.compile(r'^\*\*[^*]+\*\*:\s*없음')
EXCESS_NEWLINES = re.compile(r'\n{3,}')

SKILL_GROUPS = ('frontend', 'backend', 'database', 'tools')

PERSONAL_FIELDS = {'name', 'email', 'phone', 'location', 'github', 'linkedin', 'summary'}
SKILL_FIELDS = {f'{group}_skills' for group in SKILL_GROUPS} | {'all_skills', 'skill_count'}
PROJECT_FIELDS = {
    'project_names', 'project_count', 'latest_project_name', 'latest_project_description', 'latest_project_role',
    'latest_project_technologies'
}
CAREER_FIELDS = {
    'current_company', 'current_position', 'current_description', 'current_technologies', 'current_period',
    'companies', 'career_years'
}

_DATE_PARTS = re.compile(r'(\d{4})\D?(\d{1,2})?')


def extract_placeholders(template: str) -> Set[str]:
    return set(PLACEHOLDER_PATTERN.findall(template or ''))


def format_array(items: Iterable[str], separator: str = ', ') -> str:
    return separator.join(items)


def _stringify(value) -> str:
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return format_array(str(item) for item in value)
    return str(value)


def _keep_line(line: str) -> bool:
    stripped = line.strip()
    if any(marker in stripped for marker in NOT_APPLICABLE_MARKERS):
        return False
    if EMPTY_LABEL_LINE.match(stripped) or NOT_APPLICABLE_LABEL_LINE.match(stripped):
        return False
    return True


def render_template(template: str, data: TemplateData) -> str:
    """Fill ``{{name}}`` placeholders and prune lines left meaningless by missing data.

    Placeholders without a value render as an empty string. Lines carrying a "not applicable"
    marker, and bold labels left without a value, are removed so that one template serves
    partially populated profiles.

    Args:
        template: Template text
        data: Placeholder values; lists are joined with ", "

    Returns:
        Rendered text
    """
    rendered = PLACEHOLDER_PATTERN.sub(lambda match: _stringify(data.get(match.group(1))), template or '')

    lines = [line for line in rendered.split('\n') if _keep_line(line)]
    result = EXCESS_NEWLINES.sub('\n\n', '\n'.join(lines))
    return result.strip()


def format_skills_by_category(skills: Iterable[Skill]) -> Dict[str, str]:
    """Group skill names into the four template skill fields.

    Empty groups become ``없음`` so the renderer drops their line.
    """
    grouped: Dict[str, List[str]] = {group: [] for group in SKILL_GROUPS}
    for skill in skills:
        category = (skill.category or '').lower()
        if category in grouped:
            grouped[category].append(skill.skill_name)

    return {f'{group}_skills': format_array(names) or '없음' for group, names in grouped.items()}


def _parse_year_month(value: Optional[str]) -> Optional[Tuple[int, int]]:
    match = _DATE_PARTS.search(value or '')
    if not match:
        return None
    return int(match.group(1)), int(match.group(2) or 1)


def career_years(careers: Iterable[Career], today: Optional[date] = None) -> Optional[int]:
    """Whole years between the earliest career start and today."""
    starts = [parsed for parsed in (_parse_year_month(career.start_date) for career in careers) if parsed]
    if not starts:
        return None

    today = today or date.today()
    year, month = min(starts)
    months = (today.year - year) * 12 + (today.month - month)
    return max(months, 0) // 12


class TemplateFiller:
    """Assemble template data from the profile store, one lookup per referenced source."""

    def __init__(self, profile_store: ProfileStore):
        self.profile_store = profile_store
        self._sources: List[Tuple[Set[str], Callable[[], TemplateData]]] = [
            (PERSONAL_FIELDS, self._personal_data),
            (SKILL_FIELDS, self._skill_data),
            (PROJECT_FIELDS, self._project_data),
            (CAREER_FIELDS, self._career_data),
        ]

    def build_data(self, template: str) -> TemplateData:
        """Collect values for every placeholder the template references.

        A failing lookup leaves its fields unset instead of failing the answer.
        """
        placeholders = extract_placeholders(template)
        data: TemplateData = {}

        for fields, loader in self._sources:
            if not placeholders & fields:
                continue
            try:
                data.update(loader())
            except Exception as e:
                logger.warning(f'Template lookup {loader.__name__} failed, leaving fields empty: {e}')

        return data

    def fill(self, template: str) -> str:
        return render_template(template, self.build_data(template))

    def _personal_data(self) -> TemplateData:
        personal = self.profile_store.get_personal()
        if personal is None:
            return {}
        return {
            'name': personal.name,
            'email': personal.email,
            'phone': personal.phone,
            'location': personal.location,
            'github': personal.github,
            'linkedin': personal.linkedin,
            'summary': personal.summary,
        }

    def _skill_data(self) -> TemplateData:
        skills = self.profile_store.get_skills()
        data: TemplateData = dict(format_skills_by_category(skills))
        data['all_skills'] = [skill.skill_name for skill in skills]
        data['skill_count'] = str(len(skills))
        return data

    def _project_data(self) -> TemplateData:
        projects = self.profile_store.get_projects()
        data: TemplateData = {
            'project_names': [project.project_name for project in projects],
            'project_count': str(len(projects)),
        }
        if projects:
            latest = projects[0]
            data.update({
                'latest_project_name': latest.project_name,
                'latest_project_description': latest.description,
                'latest_project_role': latest.role,
                'latest_project_technologies': latest.technologies,
            })
        return data

    def _career_data(self) -> TemplateData:
        careers = self.profile_store.get_careers()
        data: TemplateData = {'companies': [career.company_name for career in careers]}

        years = career_years(careers)
        if years is not None:
            data['career_years'] = str(years)

        current = next((career for career in careers if career.ongoing), careers[0] if careers else None)
        if current is not None:
            data.update({
                'current_company': current.company_name,
                'current_position': current.position,
                'current_description': current.description,
                'current_technologies': current.technologies,
                'current_period': f'{current.start_date} - {current.end_date or "현재"}',
            })
        return data
