"""
Stereo input preprocessing

입력 전처리 관련 모든 기능을 포함:
- sensor_module: 인코딩 검증, 픽셀 정규화, 내부 파라미터, TF, 스테레오 캘리브레이션
- pipeline: 동기화기, 입력 어댑터, 프레임 조립, 이벤트 파이프라인, Bag 재생
- utils: 로깅 유틸리티
"""

__all__ = []
