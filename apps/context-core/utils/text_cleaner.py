import re


class TextCleaner:
    @staticmethod
    def normalize_title(text: str) -> str:
        """Lowercase, strip punctuation and collapse whitespace"""
        text = (text or "").lower()
        text = re.sub(r"[^\w\s]", "", text)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    @staticmethod
    def normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    @staticmethod
    def email_as_name(email: str) -> str:
        """'jane.doe@acme.com' -> 'jane doe'"""
        local_part = TextCleaner.normalize_email(email).split("@")[0]
        return re.sub(r"[._]+", " ", local_part).strip()

    @staticmethod
    def strip_bullet(text: str) -> str:
        return re.sub(r"^\s*[-*•]\s*", "", text or "").strip()
