"""
Event vocabulary accepted from the voice SDK.
Adding an alias here changes how inbound messages are classified.
"""

# Explicit source discriminator values
SOURCE_USER = "user"
SOURCE_AI = "ai"

# Keys checked, in order, for the event-kind discriminator
TYPE_KEYS = ("type", "message_type", "event_type")

# Keys checked, in order, for the message body
CONTENT_KEYS = ("message", "content", "text")

# Keys checked inside a structured body
USER_TEXT_KEYS = ("user_transcript", "transcript", "text")
AGENT_TEXT_KEYS = ("agent_response", "tentative_agent_response", "response", "text")

# Nested event envelopes some SDK versions wrap the body in
NESTED_EVENT_KEYS = (
    "user_transcription_event",
    "agent_response_event",
    "tentative_agent_response_internal_event",
)

USER_TRANSCRIPT_TYPES = {"user_transcript", "user_transcription"}
TENTATIVE_AGENT_TYPES = {
    "internal_tentative_agent_response",
    "agent_response_tentative",
    "tentative_agent_response",
}
FINAL_AGENT_TYPES = {"agent_response", "agent_response_final"}
INTERRUPTION_TYPES = {"interruption"}

# Explicit non-final flags on user transcripts
NON_FINAL_FLAG_KEYS = ("final", "is_final", "isFinal")
