# PLGX build utilities
from .logging import (log, logWarning, logError, logDebug, init_logging, close_logging,
                      print_summary, get_counts, reset_counts)
from .guid import new_file_guid, generate_guid, guid_to_wire_bytes
from .binary import (write_tag, write_record, write_record_header, write_record_u32,
                     write_record_u64, record_size, reserve_length, patch_length)
from .paths import to_plgx_separators, to_plgx_timestamp, ensure_directory_exists
