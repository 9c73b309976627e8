from .validators import count_content_characters, utc_now_iso

__all__ = ["count_content_characters", "utc_now_iso"]
