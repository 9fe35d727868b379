from undup.core.models import CacheMode, TieBreak

CACHE_ALIASES = {
    "none": CacheMode.NONE,
    "memory": CacheMode.MEMORY,
    "persistent": CacheMode.PERSISTENT,
}

CACHE_CHOICES = list(CACHE_ALIASES.keys())

CACHE_HELP_TEXT = (
    "Hash cache used while walking both trees:\n"
    "  none       : Re-hash every file (default)\n"
    "  memory     : Reuse hashes within this run\n"
    "  persistent : Keep hashes on disk, reused while size and mtime are unchanged\n"
    "Example    : %(prog)s -s ~/Music -t ~/Backup/Music --cache persistent\n"
)

TIE_BREAK_ALIASES = {
    "discovery": TieBreak.DISCOVERY,
    "lexicographic": TieBreak.LEXICOGRAPHIC,
}

TIE_BREAK_CHOICES = list(TIE_BREAK_ALIASES.keys())

TIE_BREAK_HELP_TEXT = (
    "Which candidate wins when several files share a hash:\n"
    "  discovery     : First one found while walking (filesystem order)\n"
    "  lexicographic : Smallest path (reproducible across runs)\n"
)

EPILOG_TEXT = """
Examples:
  Show which files in the backup duplicate the originals
  %(prog)s -s ~/Photos -t ~/Backup/Photos --dry-run

  Replace the duplicates with symlinks (asks for confirmation)
  %(prog)s -s ~/Photos -t ~/Backup/Photos

  Several roots on each side, duplicates moved to trash, no prompt (for scripts)
  %(prog)s -s ~/Photos ~/Videos -t /mnt/old /mnt/older --trash --force

  Environment:
  UNDUP_LOG=debug  Set the log level (debug, info, warning, error)
  DEBUG=1          Show tracebacks for unexpected errors
"""
