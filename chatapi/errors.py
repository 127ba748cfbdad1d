# chatapi/errors.py


class ChatError(Exception):
    pass


# messages holds one human readable line per offending field
class ValidationError(ChatError):
    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class ConflictError(ChatError):
    pass


class NotFoundError(ChatError):
    pass


class UnknownSenderError(ChatError):
    pass


class StoreError(ChatError):
    pass
