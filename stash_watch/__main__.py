import sys

from stash_watch.main import main

if __name__ == "__main__":
    sys.exit(main())
