"""clipblend — frame-accurate timeline composition for short edited videos.

Sequence source clips with trims and crossfades, put an image overlay and
word-limited captions on top, append a summary slide, then preview single
frames or export the whole timeline to mp4. Projects are edited through
pure state transitions or declared in YAML manifests.
"""
