# Sync/exceptions.py


class SyncError(Exception):
    """Base exception for the sync engine."""
    pass


class ApplyError(SyncError):
    """A pushed batch could not be committed. Nothing from the batch was kept; retrying the whole push is safe."""
    def __init__(self, message, entity=None, entity_id=None, *args):
        super().__init__(message, *args)
        self.entity = entity
        self.entity_id = entity_id

    def __str__(self):
        base = super().__str__()
        details = []
        if self.entity: details.append(f"Entity: {self.entity}")
        if self.entity_id: details.append(f"ID: {self.entity_id}")
        return f"{base} ({', '.join(details)})" if details else base
