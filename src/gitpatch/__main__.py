import sys

from gitpatch.cli import main

sys.exit(main())
