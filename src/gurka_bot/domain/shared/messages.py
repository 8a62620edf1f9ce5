"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_GUILD_ID = "Guild ID must be positive"
    INVALID_CHANNEL_ID = "Channel ID must be positive"

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    EMPTY_RESPONSE_COMMAND_NAME = "Response command name cannot be empty"

    # Startup Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s in guild %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s in guild %s"
    VOICE_CLIENT_ERROR = "Client error connecting in guild %s: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_TEARDOWN_DETECTED = "Voice connection in guild %s was torn down externally"
    VOICE_AUTO_PAUSED = "No listeners left in guild %s, auto-pausing"
    VOICE_AUTO_RESUMED = "Listeners returned in guild %s, resuming"

    # Transport Status
    TRANSPORT_STATUS_CHANGED = "Transport in guild %s: %s -> %s"
    TRANSPORT_LISTENER_ERROR = "Status listener failed in guild %s"
    TRANSPORT_STALE_FINISH = "Ignoring finish of superseded audio source in guild %s"
    TRANSPORT_PLAYBACK_ERROR = "Playback error in guild %s: %r"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_START_FAILED = "Failed to start '%s' in guild %s"
    PLAYBACK_START_TIMEOUT = "Timed out opening stream for '%s' in guild %s"
    PLAYBACK_START_SUPERSEDED = "Start of '%s' in guild %s was superseded"
    PLAYBACK_IDLE_DURING_START = "Ignoring idle status during track start in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_QUEUE_EXHAUSTED = "Queue exhausted in guild %s"
    PLAYBACK_CALLBACK_ERROR = "Error in track finished callback for guild %s"
    NOTIFY_FAILED = "Failed to send notification in guild %s"

    # Stream Processes
    STREAM_EXITED = "Stream process for '%s' exited with code %s in guild %s"
    STREAM_STALE_EXIT = "Ignoring exit of superseded stream process (code %s) in guild %s"
    STREAM_SPAWN_ABANDONED = "Killed yt-dlp process %s whose start was cancelled"
    STREAM_EXIT_AFTER_LOOP_CLOSED = "yt-dlp process %s exited with code %s after the event loop closed"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued %s track(s) in guild %s (queue length %s)"
    QUEUE_SKIPPED = "Skipped '%s' in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    QUEUE_REMOVED = "Removed positions %s-%s from queue in guild %s"
    QUEUE_SHUFFLED = "Shuffled %s tracks in guild %s"
    QUEUE_INIT_REFUSED = "Refusing to initialise non-empty queue in guild %s"
    QUEUE_INITIALISED = "Initialised queue with %s tracks in guild %s"
    LOOP_MODE_CHANGED = "Player mode changed to %s in guild %s"

    # Session Registry
    SESSION_CREATED = "Created session for %s"
    SESSION_REMOVED = "Removed session for %s"
    SESSION_CLOSED = "Closed session for %s"

    # Persistence
    STATE_SAVED = "Saved %s session snapshot(s) to %s"
    STATE_SAVE_SKIPPED = "Skipping state save: transport for guild %s is disconnected"
    STATE_SAVE_FAILED = "Failed to save session state to %s"
    STATE_LOADED = "Loaded %s session snapshot(s) from %s"
    STATE_MISSING = "No saved session state at %s"
    STATE_CORRUPT = "Session state at %s is unreadable (%s validation errors), ignoring it"
    STATE_RESTORED = "Restored %s of %s session(s)"
    STATE_RESTORE_ENTRY_FAILED = "Failed to restore session for guild %s"
    STATE_RESTORE_FAILED = "Failed to read session state"
    STATE_DIR_UNUSABLE = "Session state directory %s is not usable: %s"
    STATE_DIR_READY = "Session state will be kept in %s"

    # Resolution/Search
    RESOLVER_SPAWN_FAILED = "Could not start resolver for %r"
    RESOLVER_TIMEOUT = "Resolver timed out after %ss for %r"
    RESOLVER_EXIT_CODE = "Resolver exited with code %s for %r"
    RESOLVER_NO_JSON = "Resolver produced no JSON document for %r"
    RESOLVER_INVALID_DOCUMENT = "Resolver document for %r failed validation: %s"
    RESOLVER_STDERR = "yt-dlp[%s]: %s"
    RESOLVER_RESULT = "Resolved %r: %s tracks, %s removed, %s long"
    RESOLVER_KILL_TIMEOUT = "yt-dlp process %s did not exit after kill"

    # Command Table
    COMMAND_DUPLICATE_ALIAS = "Alias/command %r already registered, skipping"
    COMMAND_DISPATCH = "Dispatching %r for %s in guild %s"
    COMMAND_FAILED = "Command %r failed in guild %s"

    # Application Lifecycle
    BOT_STARTING = "Starting gurka-bot in {environment} mode"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_COMMANDS_REGISTERED = "Registered %s command words with prefix %r"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_REPLY_FAILED = "Failed to send reply in channel %s"


class DiscordUIMessages:
    """User-facing text sent to Discord channels."""

    # Prefixes
    ERROR_PREFIX = "❌ Error: {error}"

    # Preconditions
    STATE_NOT_IN_VOICE = "You must be in a voice channel!"
    STATE_NOT_IN_VOICE_TO_PLAY = "You must be in a voice channel to play music!"
    STATE_ALREADY_IN_OTHER_CHANNEL = "I already am in another voice channel!"
    STATE_PLAYING_ELSEWHERE = "I'm already playing music in another voice channel."
    STATE_NO_SESSION = "I'm not in a voice channel."
    STATE_NOT_IN_YOUR_CHANNEL = "I'm not in your voice channel!"
    STATE_BOT_AUTHOR = "I don't take orders from other bots."
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."
    ERROR_UNEXPECTED = "Something went wrong, try again later."

    # Join / leave
    SUCCESS_JOINED = "👋 Coming."
    SUCCESS_LEFT = "👋 See you later."

    # Fetching
    FETCH_ADDED = "➕ Added {added} track(s)."
    FETCH_ADDED_WITH_REMOVED = "➕ Added {added} track(s), removed {removed}."
    FETCH_LONG_WARNING = (
        "⚠️ {count} track(s) run longer than 50 minutes and may stop early."
    )
    FETCH_NOTHING_FOUND = "🔎 Nothing found for `{query}`."
    PLAY_QUERY_REQUIRED = "Tell me what to play, e.g. `{prefix}play never gonna give you up`."

    # Playback
    NOW_PLAYING = "⏵ Now playing **{title}** ({duration})!"
    NOW_PLAYING_PROGRESS = "🎶 Listening to **{title}** ({elapsed}/{duration})."
    NOTHING_PLAYING = "Nothing is playing."
    QUEUE_ONLY_CURRENT = "🎶 Now playing **{title}** ({duration}), nothing after that."
    QUEUE_HEADER = "🎶 Now playing **{title}** ({duration}).\nUp next:"
    QUEUE_UP_NEXT_NO_CURRENT = "Up next:"
    QUEUE_LINE = "  {position}. **{title}** ({duration})"
    END_OF_QUEUE = "⏹️ End of the music."
    START_FAILED = "⚠️ Couldn't play **{title}**, skipping it."
    SUCCESS_PAUSED = "⏸️ Paused."
    SUCCESS_RESUMED = "▶️ Resuming."
    SUCCESS_SKIPPED = "⏭️ Skipped **{title}**."
    NOTHING_TO_SKIP = "There's nothing to skip."
    NOTHING_TO_PAUSE = "There's nothing to pause."
    NOTHING_TO_RESUME = "Nothing is paused."

    # Queue editing
    SUCCESS_QUEUE_CLEARED = "🧹 Stopped and cleared the queue."
    SUCCESS_REMOVED = "🗑️ Removed {count} track(s) from the queue."
    SUCCESS_SHUFFLED = "🔀 Shuffled {count} tracks."
    NOTHING_TO_SHUFFLE = "Not enough tracks in the queue to shuffle."
    LOOP_ENABLED = "🔁 Looping the queue."
    LOOP_DISABLED = "➡️ Playing the queue once."

    # Remove command arguments
    REMOVE_ARGUMENT_REQUIRED = (
        "You must pass in a number (e.g. `{prefix}rm 1`) "
        "or a range of numbers (e.g. `{prefix}rm 5-10`)."
    )
    REMOVE_RANGE_TWO_NUMBERS = "There must be exactly two numbers in the range."
    REMOVE_RANGE_NOT_NUMBERS = "Parts of range must be numbers."
    REMOVE_NOT_A_NUMBER = "You must pass in a number or a range."
    REMOVE_BAD_RANGE = "Incorrect values for range!"
    REMOVE_BAD_INDEX = "Incorrect song number!"

    # Canned responses
    RESPONSE_NOT_CONFIGURED = '"{name}" has no responses set!'

    # Help
    HELP_HEADER = "Here's what I can do:"
    HELP_LINE = "    - `{name}` - {description}"
