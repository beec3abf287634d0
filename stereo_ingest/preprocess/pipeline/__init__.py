"""Stereo input pipeline: synchronization, event processing and bag replay"""

from .synchronizer import FrameSynchronizer, SyncedMessages
from .input_adapter import FourStreamAdapter, PackedMessageAdapter
from .frame_emitter import FrameEmitter
from .stereo_processor import StereoOdometryInput, InputStats, create_stereo_input

__all__ = [
    'FrameSynchronizer',
    'SyncedMessages',
    'FourStreamAdapter',
    'PackedMessageAdapter',
    'FrameEmitter',
    'StereoOdometryInput',
    'InputStats',
    'create_stereo_input',
]
