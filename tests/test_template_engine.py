"""
Tests for template rendering and template data assembly.
"""

from datetime import date

from portfolio_rag.models.core import Career, Skill
from portfolio_rag.services.profile_store import InMemoryProfileStore
from portfolio_rag.services.template_engine import (TemplateFiller, career_years, extract_placeholders, format_array,
                                                    format_skills_by_category, render_template)


class RecordingStore(InMemoryProfileStore):

    def __init__(self, tables):
        super().__init__(tables)
        self.fetched = []

    def fetch_table(self, table):
        self.fetched.append(table)
        return super().fetch_table(table)


class TestRenderTemplate:

    def test_substitutes_placeholders(self):
        assert render_template('안녕하세요, {{name}}입니다.', {'name': '김하늬'}) == '안녕하세요, 김하늬입니다.'

    def test_joins_lists(self):
        assert render_template('기술: {{skills}}', {'skills': ['React', 'Next.js']}) == '기술: React, Next.js'

    def test_not_applicable_line_removed(self):
        template = '**프론트엔드**: {{frontend}}\n**백엔드**: {{backend}}'
        assert render_template(template, {'frontend': '없음', 'backend': 'Node.js'}) == '**백엔드**: Node.js'

    def test_missing_value_leaves_empty_label_removed(self):
        template = '**이름**: {{name}}\n**GitHub**: {{github}}'
        assert render_template(template, {'name': '김하늬'}) == '**이름**: 김하늬'

    def test_empty_skill_group_line_removed(self):
        template = '**프론트엔드**: {{frontend_skills}}\n**백엔드**: {{backend_skills}}'
        data = {'frontend_skills': '', 'backend_skills': 'Node.js'}
        assert render_template(template, data) == '**백엔드**: Node.js'

    def test_none_value_renders_empty(self):
        assert render_template('**GitHub**: {{github}}', {'github': None}) == ''

    def test_line_with_negative_marker_removed(self):
        template = '경력 소개\n관련 경험이 없습니다\n끝'
        assert render_template(template, {}) == '경력 소개\n끝'

    def test_collapses_blank_lines(self):
        assert render_template('첫째\n\n\n\n둘째', {}) == '첫째\n\n둘째'

    def test_pruned_lines_do_not_leave_gaps(self):
        template = '소개\n\n**데이터베이스**: {{database}}\n\n\n마무리'
        assert render_template(template, {'database': '없음'}) == '소개\n\n마무리'

    def test_trims_result(self):
        assert render_template('\n\n  {{name}}  \n', {'name': '김하늬'}) == '김하늬'


class TestHelpers:

    def test_extract_placeholders(self):
        assert extract_placeholders('{{name}} {{email}} {{name}}') == {'name', 'email'}

    def test_extract_placeholders_none(self):
        assert extract_placeholders('플레이스홀더 없음') == set()

    def test_format_array(self):
        assert format_array(['a', 'b']) == 'a, b'
        assert format_array(['a', 'b'], ' / ') == 'a / b'

    def test_format_skills_by_category(self):
        skills = [Skill('React', 'frontend'), Skill('Node.js', 'Backend'), Skill('Figma', 'design')]
        assert format_skills_by_category(skills) == {
            'frontend_skills': 'React',
            'backend_skills': 'Node.js',
            'database_skills': '없음',
            'tools_skills': '없음',
        }

    def test_career_years(self):
        careers = [Career('TeamRemited', start_date='2025-03'), Career('Traport', start_date='2021-01')]
        assert career_years(careers, today=date(2026, 10, 19)) == 5

    def test_career_years_without_dates(self):
        assert career_years([Career('Unknown')], today=date(2026, 10, 19)) is None


class TestTemplateFiller:

    def test_fills_personal_and_career_fields(self, profile_store):
        filler = TemplateFiller(profile_store)
        assert filler.fill('{{name}} / {{current_company}}') == '김하늬 / TeamRemited'

    def test_fills_skill_groups(self, profile_store):
        filler = TemplateFiller(profile_store)
        rendered = filler.fill('**프론트엔드**: {{frontend_skills}}\n**데이터베이스**: {{database_skills}}')
        assert rendered == '**프론트엔드**: React, Next.js, TypeScript'

    def test_fills_project_fields(self, profile_store):
        filler = TemplateFiller(profile_store)
        assert filler.fill('{{latest_project_name}} ({{project_count}}개)') == 'AI 챗봇 포트폴리오 (1개)'

    def test_current_period(self, profile_store):
        filler = TemplateFiller(profile_store)
        assert filler.fill('{{current_period}}') == '2025-03 - 현재'

    def test_only_referenced_sources_are_read(self, tables):
        store = RecordingStore(tables)
        TemplateFiller(store).fill('{{name}}')
        assert store.fetched == ['personal']

    def test_failing_source_leaves_fields_empty(self, tables):

        class BrokenSkills(InMemoryProfileStore):

            def fetch_table(self, table):
                if table == 'skills':
                    raise RuntimeError('boom')
                return super().fetch_table(table)

        filler = TemplateFiller(BrokenSkills(tables))
        assert filler.fill('{{name}}\n**기술**: {{all_skills}}') == '김하늬'
