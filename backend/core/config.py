import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)

ELEVENLABS_API_KEY = str(os.getenv("ELEVENLABS_API_KEY") or "").strip()
CONVAI_AGENT_ID = str(os.getenv("CONVAI_AGENT_ID") or "").strip()
CONVAI_VOICE_ID = str(os.getenv("CONVAI_VOICE_ID") or "21m00Tcm4TlvDq8ikWAM").strip()
CONVAI_WS_URL = str(os.getenv("CONVAI_WS_URL") or "wss://api.elevenlabs.io/v1/convai/conversation").strip()
CONVAI_API_URL = str(os.getenv("CONVAI_API_URL") or "https://api.elevenlabs.io").strip().rstrip("/")
AGENT_SPEAK_DEBOUNCE_MS = max(0, int(os.getenv("AGENT_SPEAK_DEBOUNCE_MS", "800")))
