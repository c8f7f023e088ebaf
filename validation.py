from PIL import Image


def is_valid_image(stream) -> bool:
    """Check that `stream` holds an image format Pillow recognises.

    Reads from the current position; the caller rewinds the stream before
    reusing it.
    """
    try:
        with Image.open(stream) as img:
            img.verify()
    except Exception:
        # Pillow raises a mix of OSError, SyntaxError and ValueError on bad data
        return False
    return True
