class S5Error(Exception):
    """Base class for everything the extractor reports to the user"""
    operation = 'extract'


class UsageError(S5Error):
    operation = 'usage'


class InodeNumberError(UsageError, ValueError):
    pass


class OpenError(S5Error):
    operation = 'open'


class CreateError(S5Error):
    operation = 'create'


class ShortReadError(S5Error):
    """
    The image ended before a fixed-size record (inode, block, directory block)
    could be read in full.  A block number of zero is not a short read,
    it just means the block is absent.
    """
    operation = 'read'

    def __init__(self, what: str, offset: int, expected: int, got: int):
        super().__init__(f"{what} at offset {offset:#x}: expected {expected} bytes, got {got}")
        self.what = what
        self.offset = offset
        self.expected = expected
        self.got = got


class UnsupportedNodeError(S5Error):
    """Informational: a node or block chain was seen but not materialized"""
    operation = 'skip'

    def __init__(self, path: str, inode_number: int, reason: str):
        super().__init__(f"{path} (inode {inode_number}): {reason}")
        self.path = path
        self.inode_number = inode_number
        self.reason = reason
