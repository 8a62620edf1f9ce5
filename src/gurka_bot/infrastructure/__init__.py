"""Infrastructure adapters: yt-dlp processes, Discord voice/text, and the JSON state file."""
