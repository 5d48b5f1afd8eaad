from .blocks import BLOCK_SIZE, Block, iter_blocks, write_block
from .ciphers import FIXED_KEY, CipherSuite, CipherSuiteError
from .main import cli
from .pipeline import load_image, output_path, process_file, run_transform, save_image
from .transforms import (
    EXTRA_TRANSFORMS,
    TRANSFORMS,
    BlockTransform,
    TransformError,
    get_transform,
    select_transforms,
)
from .version import __version__

def penguin(path: str, only=None): return process_file(path, CipherSuite.from_key(), select_transforms(only))
def penguin_array(pixels, name: str): return run_transform(pixels, get_transform(name), CipherSuite.from_key())
