"""voicedesk - real-time phone voice agent.

Bridges a Plivo audio stream to Deepgram STT, an LLM reasoning engine and a
speech synthesizer, one session per call.
"""

__version__ = "0.1.0"
