from speakr_transcriber.infrastructure.assemblyai_transcriber import AssemblyAITranscriber
from speakr_transcriber.infrastructure.ffmpeg_recorder import FFmpegRecorder
from speakr_transcriber.infrastructure.minio_storage import MinioObjectStore

__all__ = ["AssemblyAITranscriber", "FFmpegRecorder", "MinioObjectStore"]
