""" python -m vcops """
import sys
from vcops.main import run

sys.exit(run())
