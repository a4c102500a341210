"""Resolved parameter record handed to the manifest applier."""

from __future__ import annotations

from pydantic import BaseModel, Field

from dsp_operator.api.models import (
    MLMD,
    APIServer,
    CRDViewer,
    MariaDB,
    Minio,
    MlPipelineUI,
    PersistenceAgent,
    ScheduledWorkflow,
    SecretKeyValue,
    S3CredentialSecret,
    VisualizationServer,
    WorkflowController,
)
from dsp_operator.credentials.materializer import CredentialReference

REDACTED = "**redacted**"


class DBConnection(BaseModel):
    """Connection details for the pipelines metadata database.

    Attributes
    ----------
    credentials_secret:
        The operator-owned secret identity, recorded whether or not it is
        the one the password was read from.
    password_source:
        The secret the password was actually resolved from.
    password:
        Base64-encoded password.
    """

    host: str = ""
    port: str = ""
    username: str = ""
    db_name: str = ""
    credentials_secret: SecretKeyValue | None = None
    password_source: CredentialReference | None = None
    password: str = ""


class ObjectStorageConnection(BaseModel):
    """Connection details for the artifact object store.

    ``endpoint`` is ``scheme://host`` with ``:port`` appended when a port is
    set.  Credential values are base64-encoded.
    """

    bucket: str = ""
    host: str = ""
    port: str = ""
    scheme: str = ""
    secure: bool = False
    endpoint: str = ""
    credentials_secret: S3CredentialSecret | None = None
    credentials_source: CredentialReference | None = None
    access_key_id: str = ""
    secret_access_key: str = ""


class GeneratedSecret(BaseModel):
    """Operator-owned secret whose material was generated in this pass."""

    name: str
    namespace: str
    data: dict[str, str] = Field(default_factory=dict, repr=False)
    persisted: bool = False


class DSPAParams(BaseModel):
    """Fully resolved configuration for one DataSciencePipelinesApplication.

    Every component block that the applier will render is concrete.  Blocks
    that stay ``None`` (``mlpipeline_ui``, ``mlmd``, ``maria_db`` with an
    external database, ``minio`` with external storage …) are not deployed.
    """

    name: str
    namespace: str
    dsp_version: str = "v1"
    engine_driver: str | None = None

    api_server: APIServer | None = None
    api_server_service_name: str = ""
    oauth_proxy: str = ""
    persistence_agent: PersistenceAgent | None = None
    scheduled_workflow: ScheduledWorkflow | None = None
    mlpipeline_ui: MlPipelineUI | None = None
    maria_db: MariaDB | None = None
    minio: Minio | None = None
    mlmd: MLMD | None = None
    crd_viewer: CRDViewer | None = None
    visualization_server: VisualizationServer | None = None
    workflow_controller: WorkflowController | None = None

    db_connection: DBConnection = Field(default_factory=DBConnection)
    object_storage_connection: ObjectStorageConnection = Field(
        default_factory=ObjectStorageConnection
    )
    database_health_check_disabled: bool = False
    object_storage_health_check_disabled: bool = False

    generated_secrets: list[GeneratedSecret] = Field(default_factory=list)

    # -- helpers --------------------------------------------------------------

    @property
    def using_v2_pipelines(self) -> bool:
        return self.dsp_version == "v2"

    @property
    def using_external_db(self) -> bool:
        return self.maria_db is None

    @property
    def using_external_storage(self) -> bool:
        return self.minio is None

    @property
    def using_mlmd(self) -> bool:
        return self.mlmd is not None and self.mlmd.deploy

    def redacted(self) -> DSPAParams:
        """Return a copy with every credential value masked."""
        copy = self.model_copy(deep=True)
        if copy.db_connection.password:
            copy.db_connection.password = REDACTED
        conn = copy.object_storage_connection
        if conn.access_key_id:
            conn.access_key_id = REDACTED
        if conn.secret_access_key:
            conn.secret_access_key = REDACTED
        for secret in copy.generated_secrets:
            secret.data = {key: REDACTED for key in secret.data}
        return copy
