"""yt-dlp backed audio resolution."""

from gurka_bot.infrastructure.audio.ytdlp_resolver import YtDlpAudioStream, YtDlpProcessResolver

__all__ = ["YtDlpAudioStream", "YtDlpProcessResolver"]
