__version__ = "0.1.0"

from .config import (
    BuildConfig as BuildConfig,
    load_config as load_config,
)
from .editor import LexiconEditor as LexiconEditor
from .exceptions import (
    CrownError as CrownError,
    ValidationError as ValidationError,
    EntityNotFoundError as EntityNotFoundError,
    DuplicateEntityError as DuplicateEntityError,
    RelationError as RelationError,
    DataImportError as DataImportError,
    ExportError as ExportError,
    DatabaseError as DatabaseError,
    ConfigError as ConfigError,
    CompilerError as CompilerError,
    InvariantError as InvariantError,
)
from .models import (
    PartOfSpeech as PartOfSpeech,
    OperationKind as OperationKind,
    LexicalEntry as LexicalEntry,
    AnnotatedLexicalEntry as AnnotatedLexicalEntry,
)
from .dictionary import LexicalDatabase as LexicalDatabase
from .pipeline import IntegrationPipeline as IntegrationPipeline
from .placement import (
    PlacementEngine as PlacementEngine,
    PlacementResult as PlacementResult,
)
from .creator import (
    BuildState as BuildState,
    CrownCreator as CrownCreator,
)
