import sys

from ambutrack.main import main

sys.exit(main())
