"""
Ready-made answers for the suggested questions shown in the chat window.

These bypass the matcher chain and are never charged against the rate limit.
"""

from typing import Dict

PREDEFINED_ANSWERS: Dict[str, str] = {
    '어떤 기술 스택을 사용하세요?':
    """저는 다양한 기술 스택을 사용하고 있습니다.
React, React Native, Next.js, Angular, TypeScript, JavaScript, HTML, CSS, Tailwind CSS 등  안주하지 않고 열심히 나아가고 있습니다~!""",
    '가장 최근에 진행한 프로젝트는 무엇인가요?':
    """가장 최근에 진행한 프로젝트는 **"AI 챗봇 포트폴리오"**입니다.
이 프로젝트는 RAG(Retrieval-Augmented Generation) 기반의 AI 챗봇을 활용한 포트폴리오 웹사이트입니다. Supabase의 pgvector를 활용한 벡터 검색과 OpenAI의 GPT 모델을 결합하여 구현했습니다.

**사용 기술:**
- Next.js
- Supabase
- OpenAI
- RAG
- Vector Search

이 프로젝트를 통해 AI 기술을 제대로 적용하는 경험을 쌓았습니다. 해당 프로젝트전에는 운영에 적용한 CS AI 챗봇도 있었습니다.""",
    '현재 회사에서 무엇을 하나요?':
    """현재 **TeamRemited**에서 **프론트엔드 개발자**로 근무하고 있습니다.

**주요 업무:**
- Next.js와 React Native를 활용한 웹과 앱 개발 및 유지보수
- 중간 관리자로서 앱웹 전반적으로 리딩 및 개발 담당

**사용 기술:**
Next.js, React Native, TypeScript, Tailwind CSS

대규모 프로젝트를 리드하면서 기술적 전문성과 리더십을 발휘하고 있습니다.""",
    'React 경험이 있나요?':
    """네, React 경험이 풍부합니다!

**React 사용 경력:**
- 현재 회사(TeamRemited)에서 Next.js와 React를 활용한 대규모 웹 애플리케이션 개발 및 React Native 앱 개발
- 이전 회사(Traport)에서 React를 활용한 웹 애플리케이션 개발

**React 관련 기술 스택:**
- React
- Next.js
- TypeScript
- React Hooks
- Context API
- 상태 관리

약 3년 이상의 React 개발 경험을 보유하고 있습니다.""",
    '경력은 몇 년인가요?':
    """총 **5년 이상**의 개발 경력을 보유하고 있습니다.

**경력 내역:**

1. **TeamRemited** - 프론트엔드 개발자
   - 기간: 2025.03 - 현재
   - Next.js 기반 대규모 웹 애플리케이션 개발 및 React Native 앱 개발

2. **Traport** - 프론트엔드 개발자
   - 기간: 2020.07 - 2025.02
   - Angular와 React를 활용한 웹 사이트 개발

주니어 개발자부터 시작하여 현재는 시니어 개발자의 역할을 수행하고 있으며, 프론트엔드로써 웹&앱의 경계를 넘나드는 개발 경험을 쌓아왔습니다.""",
}

SUGGESTED_QUESTIONS = list(PREDEFINED_ANSWERS)
