from .acquisition import AcquisitionPipeline
from .config import AudioSourceConfig, build_audio_source_config, load_config, validate_config
from .runtime import get_runtime_info
from .types import AcquisitionResult, Candidate, ClientInfo, FailureReason, SongRequest

__all__ = [
    "AcquisitionPipeline",
    "AcquisitionResult",
    "AudioSourceConfig",
    "Candidate",
    "ClientInfo",
    "FailureReason",
    "SongRequest",
    "build_audio_source_config",
    "get_runtime_info",
    "load_config",
    "validate_config",
]
