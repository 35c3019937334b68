"""Stream orchestration, utterance finalization, timers and retry."""
