class IndexingStrategy:
    """Decide which header fields are worth inserting into the dynamic table."""

    def index_header(self, name: str, value: str) -> bool:
        return True


class NoPathIndexingStrategy(IndexingStrategy):
    """Never index :path, it rarely repeats across requests."""

    def index_header(self, name: str, value: str) -> bool:
        if name == ":path":
            return False
        return super().index_header(name, value)
