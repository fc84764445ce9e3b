import sys

from dictum.cli import main

sys.exit(main())
