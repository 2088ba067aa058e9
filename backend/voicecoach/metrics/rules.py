"""
Speech metric thresholds.
Changing these changes reported numbers.
"""

FILLER_WORDS = {"um", "uh", "like", "so", "well", "actually"}
FILLER_PHRASES = {("you", "know")}

# Gaps between consecutive final segments shorter than this are normal turn-taking (ms)
NORMAL_SILENCE_MAX_MS = 700

# Speaking rate used to subtract talk time from a gap (words per minute)
ASSUMED_SPEAKING_WPM = 150

SILENCE_PCT_MAX = 100.0
