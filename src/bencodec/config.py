# src/bencodec/config.py
import os

# --- General ---
LOG_LEVEL = os.environ.get('BENCODEC_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# --- Wire format ---
INTEGER_BITS = 64
MIN_INTEGER = -(2 ** (INTEGER_BITS - 1))
MAX_INTEGER = 2 ** (INTEGER_BITS - 1) - 1
TEXT_ENCODING = 'utf-8'
KEY_ERRORS = 'surrogateescape' # dictionary keys must survive a decode/encode cycle byte-for-byte

# --- Record field metadata ---
FIELD_TAG = 'bencode'
OMIT_SENTINEL = '-'
OMITEMPTY_OPTION = 'omitempty'

# --- Command line ---
DEFAULT_JSON_INDENT = 2
