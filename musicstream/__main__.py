import sys

from musicstream.cli import main

sys.exit(main())
