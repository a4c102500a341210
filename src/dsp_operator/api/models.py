"""Desired-state models for the ``DataSciencePipelinesApplication`` resource.

These mirror the CRD's JSON schema.  Documents are accepted in their
camelCase wire form (``apiServer``, ``pipelineDBName`` …) as well as by
Python field name.

Presence carries meaning: a block that is ``None`` was not written by the
user and the operator decides its defaults; a present block with empty
fields asks the operator to fill only those fields.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SpecModel(BaseModel):
    """Common config for every CRD block."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# -- shared building blocks -------------------------------------------------


class Resources(SpecModel):
    """A CPU / memory pair expressed as Kubernetes quantity strings."""

    cpu: str = ""
    memory: str = ""


class ResourceRequirements(SpecModel):
    """Compute requirements for a component pod.

    Storage is requested through ``pvcSize`` on the owning block.
    """

    limits: Resources | None = None
    requests: Resources | None = None


class SecretKeyValue(SpecModel):
    """Points at a single key within a secret."""

    name: str
    key: str = ""


class S3CredentialSecret(SpecModel):
    """Secret holding S3 credentials.

    ``access_key`` / ``secret_key`` are the *keys* in the secret's data map,
    not the credential values themselves.
    """

    secret_name: str
    access_key: str = ""
    secret_key: str = ""


class ArtifactScriptConfigMap(SpecModel):
    name: str = ""
    key: str = ""


# -- pipeline components ----------------------------------------------------


class APIServer(SpecModel):
    """DS Pipelines API server configuration."""

    deploy: bool = True
    image: str = ""
    apply_tekton_custom_resource: bool = True
    archive_logs: bool = False
    artifact_image: str = ""
    cache_image: str = ""
    move_results_image: str = ""
    artifact_script_config_map: ArtifactScriptConfigMap | None = None
    inject_default_script: bool = True
    strip_eof: bool = Field(default=True, alias="stripEOF")
    terminate_status: Literal["Cancelled", "StoppedRunFinally", "CancelledRunFinally"] = "Cancelled"
    track_artifacts: bool = True
    db_config_con_max_lifetime_sec: int = 120
    collect_metrics: bool = True
    enable_route: bool = Field(default=True, alias="enableOauth")
    enable_sample_pipeline: bool = True
    auto_update_pipeline_default_version: bool = True
    resources: ResourceRequirements | None = None


class PersistenceAgent(SpecModel):
    deploy: bool = True
    image: str = ""
    num_workers: int = 2
    resources: ResourceRequirements | None = None


class ScheduledWorkflow(SpecModel):
    deploy: bool = True
    image: str = ""
    cron_schedule_timezone: str = "UTC"
    resources: ResourceRequirements | None = None


class MlPipelineUI(SpecModel):
    """KFP UI.  Unsupported upstream; the image must always be given."""

    deploy: bool = True
    config_map_name: str = Field(default="", alias="configMap")
    resources: ResourceRequirements | None = None
    image: str = ""


# -- database ---------------------------------------------------------------


class MariaDB(SpecModel):
    """Operator-managed MariaDB deployment."""

    deploy: bool = True
    image: str = ""
    username: str = ""
    password_secret: SecretKeyValue | None = None
    db_name: str = Field(default="", alias="pipelineDBName")
    pvc_size: str = "10Gi"
    resources: ResourceRequirements | None = None


class ExternalDB(SpecModel):
    """User-provided SQL database.  Schema validation guarantees the fields."""

    host: str
    port: str = ""
    username: str = ""
    db_name: str = Field(default="", alias="pipelineDBName")
    password_secret: SecretKeyValue | None = None


class Database(SpecModel):
    """Either ``maria_db`` or ``external_db``; ``external_db`` always wins."""

    maria_db: MariaDB | None = Field(default=None, alias="mariaDB")
    external_db: ExternalDB | None = Field(default=None, alias="externalDB")
    disable_health_check: bool = False


# -- object storage ---------------------------------------------------------


class Minio(SpecModel):
    """Operator-managed Minio.  There is no default image for it."""

    deploy: bool = True
    bucket: str = ""
    s3_credentials_secret: S3CredentialSecret | None = None
    pvc_size: str = "10Gi"
    resources: ResourceRequirements | None = None
    image: str = ""


class ExternalStorage(SpecModel):
    host: str
    bucket: str = ""
    scheme: str = ""
    s3_credentials_secret: S3CredentialSecret | None = None
    secure: bool | None = None
    port: str = ""


class ObjectStorage(SpecModel):
    """Either ``minio`` or ``external_storage``; ``external_storage`` always wins."""

    minio: Minio | None = None
    external_storage: ExternalStorage | None = None
    disable_health_check: bool = False


# -- ML metadata ------------------------------------------------------------


class Envoy(SpecModel):
    resources: ResourceRequirements | None = None
    image: str = ""


class GRPC(SpecModel):
    resources: ResourceRequirements | None = None
    image: str = ""
    port: str = ""


class Writer(SpecModel):
    resources: ResourceRequirements | None = None
    image: str = ""


class MLMD(SpecModel):
    deploy: bool = True
    envoy: Envoy | None = None
    grpc: GRPC | None = None
    writer: Writer | None = None


# -- pass-through components ------------------------------------------------


class CRDViewer(SpecModel):
    deploy: bool = True
    image: str = ""


class VisualizationServer(SpecModel):
    deploy: bool = True
    image: str = ""


class WorkflowController(SpecModel):
    deploy: bool = True
    image: str = ""


# -- resource ---------------------------------------------------------------


class DSPASpec(SpecModel):
    api_server: APIServer | None = None
    persistence_agent: PersistenceAgent | None = None
    scheduled_workflow: ScheduledWorkflow | None = None
    database: Database | None = None
    mlpipeline_ui: MlPipelineUI | None = Field(default=None, alias="mlpipelineUI")
    object_storage: ObjectStorage | None = None
    mlmd: MLMD | None = None
    crd_viewer: CRDViewer | None = Field(default=None, alias="crdviewer")
    visualization_server: VisualizationServer | None = None
    dsp_version: str = "v1"
    engine_driver: str | None = None
    workflow_controller: WorkflowController | None = None


class ObjectMeta(SpecModel):
    name: str
    namespace: str


class DataSciencePipelinesApplication(SpecModel):
    """A ``datasciencepipelinesapplications.datasciencepipelinesapplications.opendatahub.io`` object."""

    api_version: str = "datasciencepipelinesapplications.opendatahub.io/v1alpha1"
    kind: str = "DataSciencePipelinesApplication"
    metadata: ObjectMeta
    spec: DSPASpec = Field(default_factory=DSPASpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace
