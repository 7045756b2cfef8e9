import sys

from redforge.cli import main

sys.exit(main())
