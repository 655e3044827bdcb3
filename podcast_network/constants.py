"""All magic numbers and configuration constants."""

SAMPLE_RATE = 24000                 # Hz, every PCM source is 24 kHz
CHANNELS = 1                        # mono
SAMPLE_WIDTH = 2                    # bytes per sample (16-bit signed)
BITS_PER_SAMPLE = 16
INT16_SCALE = 32768.0               # int16 <-> float normalisation factor
WAV_HEADER_SIZE = 44                # bytes before the PCM data region
FALLBACK_DELAY_SECONDS = 1.0        # wait before skipping a line whose audio failed
SILENT_LINE_DELAY_SECONDS = 2.0     # wait before skipping a line with no obtainable audio
TTS_RETRY_COUNT = 3                 # max retries per generated line
TTS_RETRY_BASE_DELAY = 1.0          # seconds, base delay for exponential backoff
TTS_RATE = "+0%"                    # edge-tts speech rate
FETCH_TIMEOUT_SECONDS = 30          # remote audio download timeout
EXPORT_TITLE_MAX_CHARS = 50         # sanitized title length in export filenames
EXPORT_EXTENSION = ".wav"
SCRIPT_MODEL = "gemini-2.5-flash"
TTS_MODEL = "gemini-2.5-flash-preview-tts"
API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_BACKEND = "gemini"          # "gemini" or "edge"
GEMINI_VOICES = {
    "Puck": "Puck (Neutral, Clean)",
    "Kore": "Kore (Female, Calm)",
    "Fenrir": "Fenrir (Deep, Authoritative)",
    "Charon": "Charon (Deep, Narrative)",
    "Aoede": "Aoede (Female, Expressive)",
}
# edge-tts stand-ins for the prebuilt Gemini voices
EDGE_VOICE_MAP = {
    "Puck": "en-US-AndrewNeural",
    "Kore": "en-US-AriaNeural",
    "Fenrir": "en-US-RogerNeural",
    "Charon": "en-GB-RyanNeural",
    "Aoede": "en-US-JennyNeural",
}
EDGE_DEFAULT_VOICE = "en-US-AndrewNeural"
DEFAULT_NEW_EPISODE_TITLE = "New Episode"
DEFAULT_NEW_EPISODE_SUMMARY = "No summary available."
NEWS_TOPIC_SUMMARY = "News Discussion"
DATA_DIR = "output"
LIBRARY_FILE = "library.json"
AUDIO_STORE_DIR = "audio"
EXPORT_DIR = "exports"
VERSION = "0.1.0"
