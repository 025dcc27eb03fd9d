import secrets


def generate_numeric_code(length=6):
    """
    Zero-padded random digits, e.g. '004217'.
    """
    return str(secrets.randbelow(10 ** length)).zfill(length)
