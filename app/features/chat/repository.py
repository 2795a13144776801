"""In-process conversation transcript"""

from typing import List

from app.features.chat.domain import Sender, TranscriptEntry


class ConversationTranscript:
    """Append-only record of user/agent exchanges for this process"""

    def __init__(self):
        self._entries: List[TranscriptEntry] = []

    def append_exchange(self, message: str, reply: str) -> None:
        self._entries.append(TranscriptEntry(sender=Sender.USER, text=message))
        self._entries.append(TranscriptEntry(sender=Sender.AGENT, text=reply))

    def entries(self) -> List[TranscriptEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
