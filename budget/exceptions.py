class ImportFileError(Exception):
    """Raised when an uploaded statement cannot be used as a whole"""
    def __init__(self, message="Failed to parse file"):
        self.message = message
        super().__init__(self.message)


class RowError(Exception):
    """Raised when a single imported row is rejected; the import continues"""
    def __init__(self, message="Validation failed"):
        self.message = message
        super().__init__(self.message)


class PendingNotFound(Exception):
    """Raised when none of the requested pending transactions belong to the user"""
    def __init__(self, message="No pending transactions found"):
        self.message = message
        super().__init__(self.message)
