from models.project import Project
from models.annotation import AnnotationRecord
from models.chat_message import ChatMessageRecord

__all__ = ["Project", "AnnotationRecord", "ChatMessageRecord"]
