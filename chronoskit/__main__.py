import sys
from chronoskit.cli import main

sys.exit(main())
