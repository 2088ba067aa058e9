from voicecoach.report.handoff import build_report_request, final_segments, format_transcript

__all__ = ["build_report_request", "final_segments", "format_transcript"]
