"""
NailongWatch - Image Detection Moderation Bot

NailongWatch watches images posted in Discord servers and uses a single-class
YOLO-style ONNX model to spot the forbidden "nailong" pattern.

Core Components:

- **Detection**: Tensor encoding/decoding, greedy non-maximum suppression and
  box compositing around an opaque ONNX Runtime inference session
- **On-demand inspection**: Replies to the check command with annotated images
  that are cleaned up after a grace period
- **Auto moderation**: Per-server opt-in enforcement with message deletion and
  timeouts that escalate for rapid repeat offenders
- **Persistence**: JSON-backed server whitelist and per-user offence records,
  loaded at startup and flushed on shutdown

Usage:
    from nailongwatch.main import main
    main()  # Starts the bot
"""
