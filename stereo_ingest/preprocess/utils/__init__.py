"""
Utility functions for stereo input replay

- logger: 로깅 설정 및 재생 요약 출력
"""

from .logger import setup_logger, log_summary

__all__ = [
    'setup_logger',
    'log_summary',
]
