import sys

from src.logic_map.cli import main

sys.exit(main())
