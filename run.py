import sys

from utfedge.cli import main

if __name__ == '__main__':
    sys.exit(main())
