# styling.py v2.0
# Part of N-Body Viewer
# v2.0: "Console Only"
# - The viewer renders through gnuplot, so the matplotlib themes are gone.
# - Only the console colour names remain, shared by every stage.

from termcolor import cprint

# --- Console Colors (using termcolor names) ---
# Usage: cprint("Hello", C.INFO)
class C:
    HEADER = 'magenta'
    SUBHEADER = 'cyan'
    SUCCESS = 'green'
    WARNING = 'yellow'
    ERROR = 'red'
    INFO = 'white'
    DEBUG = 'grey'
    BOLD_ATTR = ['bold']

__all__ = ['C', 'cprint']

if __name__ == "__main__":
    cprint("--- styling.py loaded ---", C.SUCCESS)
    cprint("Example usage:", C.SUBHEADER, attrs=C.BOLD_ATTR)
    cprint("  from styling import C, cprint", C.DEBUG)
    cprint("  cprint('Hello!', C.HEADER, attrs=C.BOLD_ATTR)", C.DEBUG)
