from typing import Any, Dict, List


class DetectionSettings:
    """Typed accessors for the ``detection`` section of the app config.

    Values are coerced on access so a hand-edited YAML file with quoted
    numbers still works; missing keys fall back to the model's defaults.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    @property
    def model_path(self) -> str:
        return str(self.data.get("model_path") or "model/last.onnx")

    @property
    def input_size(self) -> int:
        return int(self.data.get("input_size", 640))

    @property
    def confidence_floor(self) -> float:
        return float(self.data.get("confidence_floor", 0.3))

    @property
    def iou_threshold(self) -> float:
        return float(self.data.get("iou_threshold", 0.7))

    @property
    def labels(self) -> List[str]:
        labels = self.data.get("labels")
        if not isinstance(labels, list) or not labels:
            return ["nailong"]
        return [str(label) for label in labels]

    @property
    def intra_threads(self) -> int:
        return int(self.data.get("intra_threads", 4))


class ModerationSettings:
    """Typed accessors for the ``moderation`` section of the app config.

    Defaults reproduce the bot's stock behaviour: trigger at 0.78, a 60 second
    escalation window and a 60 second timeout for repeat offenders.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    def _text(self, key: str, default: str) -> str:
        value = self.data.get(key)
        return str(value) if value is not None else default

    # Thresholds and timings
    @property
    def trigger(self) -> float:
        return float(self.data.get("trigger", 0.78))

    @property
    def ban_cooldown(self) -> int:
        return int(self.data.get("ban_cooldown", 60))

    @property
    def ban_duration(self) -> int:
        return int(self.data.get("ban_duration", 60))

    @property
    def delete_delay_seconds(self) -> float:
        return float(self.data.get("delete_delay_seconds", 1.0))

    @property
    def artifact_grace_seconds(self) -> float:
        return float(self.data.get("artifact_grace_seconds", 10.0))

    # Toggles
    @property
    def is_reply_trigger(self) -> bool:
        return bool(self.data.get("is_reply_trigger", True))

    @property
    def is_delete_message(self) -> bool:
        return bool(self.data.get("is_delete_message", True))

    # Commands
    @property
    def start_cmd(self) -> str:
        return self._text("start_cmd", ".nailostart")

    @property
    def stop_cmd(self) -> str:
        return self._text("stop_cmd", ".nailostop")

    @property
    def reply_output_img_cmd(self) -> str:
        return self._text("reply_output_img_cmd", "检测")

    @property
    def my_times_cmd(self) -> str:
        return self._text("my_times_cmd", "我的奶龙")

    # Messages
    @property
    def start_msg(self) -> str:
        return self._text("start_msg", "喜欢发奶龙的小朋友你们好啊，📢📢📢，本群已开启奶龙戒严")

    @property
    def stop_msg(self) -> str:
        return self._text("stop_msg", "📢📢📢，本群已关闭奶龙戒严")

    @property
    def reply_msg(self) -> str:
        return self._text("reply_msg", "不准发奶龙哦，再发打你👊")

    @property
    def ban_msg(self) -> str:
        return self._text("ban_msg", "发发发发发，不准发了👊👊👊")
