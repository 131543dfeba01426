def to_bytes(text):
    """
    Convert Unicode text to UTF-8 encoded bytes.

    Byte strings are returned unchanged, as are ``None`` values.

    :param text: Unicode text to convert to bytes
    :rtype: bytes
    """
    if text is None or isinstance(text, bytes):
        return text
    if isinstance(text, (bytearray, memoryview)):
        return bytes(text)
    return str(text).encode('utf-8')
