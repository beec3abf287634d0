"""pytest 실행 설정.

테스트는 설치된 stereo_ingest 패키지를 기준으로 실행한다
(`pip install -e .[test]` 후 `python -m pytest`).
공용 입력 생성 함수는 tests/stereo_fixtures.py에 있다.
"""

from __future__ import annotations
