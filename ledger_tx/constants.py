"""Wire format constants"""

PUBLIC_KEY_LENGTH = 32
HASH_LENGTH = 32
SIGNATURE_LENGTH = 64

# Account indices are single bytes on the wire
MAX_ACCOUNTS = 255
MAX_COMPACT_U16 = 0xffff

# Versioned messages start with 0x80 + version number
VERSION_PREFIX_MASK = 0x80
MAX_MESSAGE_VERSION = 0x7f
SUPPORTED_MESSAGE_VERSIONS = (0,)

# Address lookup table account: 56 bytes of metadata, then 32-byte keys
LOOKUP_TABLE_META_SIZE = 56
