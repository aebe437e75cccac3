import sys

from blanket.cli import main

sys.exit(main())
