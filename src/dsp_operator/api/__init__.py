"""
API — desired-state types for the DataSciencePipelinesApplication resource.

The CRD-decoding layer produces these models; the resolver consumes them
read-only.
"""

from dsp_operator.api.models import (
    MLMD,
    APIServer,
    Database,
    DataSciencePipelinesApplication,
    DSPASpec,
    ExternalDB,
    ExternalStorage,
    MariaDB,
    Minio,
    MlPipelineUI,
    ObjectMeta,
    ObjectStorage,
    PersistenceAgent,
    ResourceRequirements,
    Resources,
    S3CredentialSecret,
    ScheduledWorkflow,
    SecretKeyValue,
)

__all__ = [
    "APIServer",
    "DSPASpec",
    "DataSciencePipelinesApplication",
    "Database",
    "ExternalDB",
    "ExternalStorage",
    "MLMD",
    "MariaDB",
    "Minio",
    "MlPipelineUI",
    "ObjectMeta",
    "ObjectStorage",
    "PersistenceAgent",
    "ResourceRequirements",
    "Resources",
    "S3CredentialSecret",
    "ScheduledWorkflow",
    "SecretKeyValue",
]
