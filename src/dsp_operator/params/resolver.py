"""Parameter resolver — desired state in, concrete parameters out.

Usage::

    from dsp_operator.params import DefaultsRegistry, ParameterResolver

    resolver = ParameterResolver(DefaultsRegistry.from_settings(settings), store)
    params = resolver.resolve(dspa)
    for secret in params.generated_secrets:
        ...  # the applier persists these exactly once

A pass works in two stages.  The first is pure: every component block is
defaulted and the database / object-storage endpoints are derived, so any
configuration error that needs no cluster access is raised before the
secret store is touched.  The second materializes the database and
object-storage credentials through :class:`SecretMaterializer`.

The input resource is never mutated; blocks are deep-copied into the
returned :class:`DSPAParams`, which the caller owns.
"""

from __future__ import annotations

import logging

from dsp_operator.api.models import (
    APIServer,
    ArtifactScriptConfigMap,
    DataSciencePipelinesApplication,
    Database,
    DSPASpec,
    Envoy,
    GRPC,
    MariaDB,
    ObjectStorage,
    PersistenceAgent,
    ResourceRequirements,
    S3CredentialSecret,
    ScheduledWorkflow,
    SecretKeyValue,
    Writer,
)
from dsp_operator.credentials.base import SecretStore
from dsp_operator.credentials.materializer import (
    Credential,
    CredentialKind,
    CredentialOwner,
    CredentialReference,
    SecretMaterializer,
)
from dsp_operator.errors import ConfigurationError, ResolutionError
from dsp_operator.params import defaults as d
from dsp_operator.params.defaults import DefaultsRegistry
from dsp_operator.params.images import Component, ImagePathSelector, PipelineVersion
from dsp_operator.params.models import DSPAParams, GeneratedSecret

logger = logging.getLogger(__name__)


def _resources_or_default(
    resources: ResourceRequirements | None, default: ResourceRequirements
) -> ResourceRequirements:
    """Keep user resources verbatim; otherwise substitute the whole default pair."""
    if resources is None:
        return default.model_copy(deep=True)
    return resources


def _service_host(prefix: str, name: str, namespace: str) -> str:
    return f"{prefix}-{name}.{namespace}.svc.cluster.local"


class ParameterResolver:
    """Resolve a :class:`DataSciencePipelinesApplication` into :class:`DSPAParams`.

    Parameters
    ----------
    registry:
        Image defaults loaded from the operator config.
    store:
        Secret store holding database / object-storage credentials.
    selector:
        Image path selector; the standard version / engine matrix when *None*.
    """

    def __init__(
        self,
        registry: DefaultsRegistry,
        store: SecretStore,
        *,
        selector: ImagePathSelector | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._selector = selector or ImagePathSelector()

    # -- public API -----------------------------------------------------------

    def resolve(
        self,
        dspa: DataSciencePipelinesApplication,
        *,
        persist_secrets: bool = False,
    ) -> DSPAParams:
        """Run one resolution pass.

        Parameters
        ----------
        dspa:
            The desired state, already schema-validated.
        persist_secrets:
            When ``True`` newly generated operator-owned secrets are created
            in the store during the pass (and a concurrently created secret
            is adopted).  When ``False`` they are only reported in
            :attr:`DSPAParams.generated_secrets` for the caller to create.

        Raises
        ------
        ConfigurationError
            The resource cannot be resolved without user action.
        TransientStoreError
            The secret store failed; re-run the pass later.
        """
        logger.info(
            "Resolving parameters for %s/%s (dspVersion=%s, engineDriver=%s)",
            dspa.namespace,
            dspa.name,
            dspa.spec.dsp_version,
            dspa.spec.engine_driver,
        )
        try:
            return self._resolve(dspa, persist_secrets)
        except ResolutionError as e:
            logger.error("Parameter resolution failed for %s/%s: %s", dspa.namespace, dspa.name, e)
            raise

    # -- stages ---------------------------------------------------------------

    def _resolve(self, dspa: DataSciencePipelinesApplication, persist_secrets: bool) -> DSPAParams:
        spec = dspa.spec.model_copy(deep=True)
        self._selector.engine_for(PipelineVersion.from_spec(spec.dsp_version), spec.engine_driver)

        params = DSPAParams(
            name=dspa.name,
            namespace=dspa.namespace,
            dsp_version=spec.dsp_version,
            engine_driver=spec.engine_driver,
            api_server=spec.api_server or APIServer(deploy=False),
            api_server_service_name=f"{d.DSP_SERVICE_PREFIX}-{dspa.name}",
            oauth_proxy=self._registry.lookup(d.OAUTH_PROXY_IMAGE_PATH),
            persistence_agent=spec.persistence_agent or PersistenceAgent(deploy=False),
            scheduled_workflow=spec.scheduled_workflow or ScheduledWorkflow(deploy=False),
            mlpipeline_ui=spec.mlpipeline_ui,
            mlmd=spec.mlmd,
            crd_viewer=spec.crd_viewer,
            visualization_server=spec.visualization_server,
            workflow_controller=spec.workflow_controller,
        )

        self._setup_api_server(params, spec)
        self._setup_persistence_agent(params, spec)
        self._setup_scheduled_workflow(params, spec)
        self._setup_ui(params)
        self._setup_mlmd(params, spec)

        db_ref = self._setup_db_params(params, spec.database)
        storage_ref = self._setup_object_params(params, spec.object_storage)

        materializer = SecretMaterializer(self._store, params.namespace)

        credential = self._materialize(params, materializer, db_ref, persist_secrets)
        params.db_connection.password_source = db_ref
        params.db_connection.password = credential.primary

        credential = self._materialize(params, materializer, storage_ref, persist_secrets)
        params.object_storage_connection.credentials_source = storage_ref
        params.object_storage_connection.access_key_id = credential.primary
        params.object_storage_connection.secret_access_key = credential.secondary

        return params

    def _default_image(self, component: Component, spec: DSPASpec) -> str:
        path = self._selector.select(component, spec.dsp_version, spec.engine_driver)
        return self._registry.lookup(path)

    # -- pipeline components --------------------------------------------------

    def _setup_api_server(self, params: DSPAParams, spec: DSPASpec) -> None:
        api = params.api_server
        api.image = api.image or self._default_image(Component.API_SERVER, spec)
        api.artifact_image = api.artifact_image or self._default_image(Component.ARTIFACT, spec)
        api.cache_image = api.cache_image or self._default_image(Component.CACHE, spec)
        api.move_results_image = api.move_results_image or self._default_image(
            Component.MOVE_RESULTS, spec
        )
        api.resources = _resources_or_default(api.resources, d.API_SERVER_RESOURCES)

        if api.artifact_script_config_map is None:
            api.artifact_script_config_map = ArtifactScriptConfigMap()
        script = api.artifact_script_config_map
        script.name = script.name or d.ARTIFACT_SCRIPT_CONFIGMAP_NAME_PREFIX + params.name
        script.key = script.key or d.ARTIFACT_SCRIPT_CONFIGMAP_KEY

    def _setup_persistence_agent(self, params: DSPAParams, spec: DSPASpec) -> None:
        agent = params.persistence_agent
        agent.image = agent.image or self._default_image(Component.PERSISTENCE_AGENT, spec)
        agent.resources = _resources_or_default(agent.resources, d.PERSISTENCE_AGENT_RESOURCES)

    def _setup_scheduled_workflow(self, params: DSPAParams, spec: DSPASpec) -> None:
        swf = params.scheduled_workflow
        swf.image = swf.image or self._default_image(Component.SCHEDULED_WORKFLOW, spec)
        swf.resources = _resources_or_default(swf.resources, d.SCHEDULED_WORKFLOW_RESOURCES)

    def _setup_ui(self, params: DSPAParams) -> None:
        ui = params.mlpipeline_ui
        if ui is None:
            return
        if not ui.image:
            raise ConfigurationError("mlPipelineUI specified, but no image provided in the DSPA CR Spec")
        ui.config_map_name = ui.config_map_name or d.ML_PIPELINE_UI_CONFIGMAP_PREFIX + params.name
        ui.resources = _resources_or_default(ui.resources, d.ML_PIPELINE_UI_RESOURCES)

    def _setup_mlmd(self, params: DSPAParams, spec: DSPASpec) -> None:
        mlmd = params.mlmd
        if mlmd is None:
            return
        mlmd.envoy = mlmd.envoy or Envoy()
        mlmd.grpc = mlmd.grpc or GRPC()
        mlmd.writer = mlmd.writer or Writer()

        mlmd.envoy.image = mlmd.envoy.image or self._default_image(Component.MLMD_ENVOY, spec)
        mlmd.grpc.image = mlmd.grpc.image or self._default_image(Component.MLMD_GRPC, spec)
        mlmd.writer.image = mlmd.writer.image or self._default_image(Component.MLMD_WRITER, spec)

        mlmd.envoy.resources = _resources_or_default(mlmd.envoy.resources, d.MLMD_ENVOY_RESOURCES)
        mlmd.grpc.resources = _resources_or_default(mlmd.grpc.resources, d.MLMD_GRPC_RESOURCES)
        mlmd.writer.resources = _resources_or_default(mlmd.writer.resources, d.MLMD_WRITER_RESOURCES)

        mlmd.grpc.port = mlmd.grpc.port or d.MLMD_GRPC_PORT

    # -- database -------------------------------------------------------------

    def _setup_db_params(self, params: DSPAParams, database: Database | None) -> CredentialReference:
        """Derive the DB connection and return the credential to resolve.

        An external database is adopted verbatim.  Otherwise a MariaDB
        deployment is assumed, with defaults for every unset field.
        """
        conn = params.db_connection
        conn.credentials_secret = SecretKeyValue(
            name=d.DB_SECRET_NAME_PREFIX + params.name,
            key=d.DB_SECRET_KEY,
        )
        params.database_health_check_disabled = bool(database and database.disable_health_check)

        if database is not None and database.external_db is not None:
            external = database.external_db
            conn.host = external.host
            conn.port = external.port
            conn.username = external.username
            conn.db_name = external.db_name
            custom = external.password_secret
            params.maria_db = None
        else:
            maria = (database.maria_db if database else None) or MariaDB()
            maria.image = maria.image or self._registry.lookup(d.MARIADB_IMAGE_PATH)
            maria.username = maria.username or d.MARIADB_USER
            maria.db_name = maria.db_name or d.MARIADB_NAME
            maria.pvc_size = maria.pvc_size or d.MARIADB_PVC_SIZE
            maria.resources = _resources_or_default(maria.resources, d.MARIADB_RESOURCES)
            params.maria_db = maria

            conn.host = _service_host(d.MARIADB_HOST_PREFIX, params.name, params.namespace)
            conn.port = d.MARIADB_HOST_PORT
            conn.username = maria.username
            conn.db_name = maria.db_name
            custom = maria.password_secret

        if custom is not None:
            return CredentialReference(
                secret_name=custom.name,
                primary_key=custom.key,
                owner=CredentialOwner.USER,
                kind=CredentialKind.DATABASE,
            )
        return CredentialReference(
            secret_name=conn.credentials_secret.name,
            primary_key=conn.credentials_secret.key,
            owner=CredentialOwner.OPERATOR,
            kind=CredentialKind.DATABASE,
        )

    # -- object storage -------------------------------------------------------

    def _setup_object_params(
        self, params: DSPAParams, storage: ObjectStorage | None
    ) -> CredentialReference:
        """Derive the object-store connection and return the credential to resolve.

        External storage is adopted verbatim.  Otherwise a Minio block with
        an explicit image is required; there is no fallback beyond it.
        """
        conn = params.object_storage_connection
        conn.credentials_secret = S3CredentialSecret(
            secret_name=d.OBJECT_STORAGE_SECRET_NAME_PREFIX + params.name,
            access_key=d.OBJECT_STORAGE_ACCESS_KEY,
            secret_key=d.OBJECT_STORAGE_SECRET_KEY,
        )
        params.object_storage_health_check_disabled = bool(storage and storage.disable_health_check)

        if storage is not None and storage.external_storage is not None:
            external = storage.external_storage
            conn.bucket = external.bucket
            conn.host = external.host
            conn.scheme = external.scheme
            # Port can be empty, which is fine.
            conn.port = external.port
            if external.secure is None:
                conn.secure = external.scheme == d.SECURE_SCHEME
            else:
                conn.secure = external.secure
            custom = external.s3_credentials_secret
            params.minio = None
        else:
            minio = storage.minio if storage else None
            if minio is None:
                raise ConfigurationError(
                    "either [spec.objectStorage.minio] or [spec.objectStorage.externalStorage] "
                    "need to be specified in DSPA spec"
                )
            if not minio.image:
                raise ConfigurationError("minio specified, but no image provided in the DSPA CR Spec")
            minio.bucket = minio.bucket or d.MINIO_DEFAULT_BUCKET
            minio.pvc_size = minio.pvc_size or d.MINIO_PVC_SIZE
            minio.resources = _resources_or_default(minio.resources, d.MINIO_RESOURCES)
            params.minio = minio

            conn.bucket = minio.bucket
            conn.host = _service_host(d.MINIO_HOST_PREFIX, params.name, params.namespace)
            conn.port = d.MINIO_PORT
            conn.scheme = d.MINIO_SCHEME
            conn.secure = False
            custom = minio.s3_credentials_secret

        conn.endpoint = f"{conn.scheme}://{conn.host}"
        if conn.port:
            conn.endpoint = f"{conn.endpoint}:{conn.port}"

        if custom is not None:
            return CredentialReference(
                secret_name=custom.secret_name,
                primary_key=custom.access_key,
                secondary_key=custom.secret_key,
                owner=CredentialOwner.USER,
                kind=CredentialKind.OBJECT_STORAGE,
            )
        return CredentialReference(
            secret_name=conn.credentials_secret.secret_name,
            primary_key=conn.credentials_secret.access_key,
            secondary_key=conn.credentials_secret.secret_key,
            owner=CredentialOwner.OPERATOR,
            kind=CredentialKind.OBJECT_STORAGE,
        )

    # -- credentials ----------------------------------------------------------

    def _materialize(
        self,
        params: DSPAParams,
        materializer: SecretMaterializer,
        ref: CredentialReference,
        persist_secrets: bool,
    ) -> Credential:
        credential = materializer.materialize(ref)
        if not credential.generated:
            return credential

        if not persist_secrets:
            params.generated_secrets.append(
                GeneratedSecret(name=ref.secret_name, namespace=params.namespace, data=dict(credential.data))
            )
            return credential

        stored = materializer.persist(ref, credential)
        if stored is credential:
            params.generated_secrets.append(
                GeneratedSecret(
                    name=ref.secret_name,
                    namespace=params.namespace,
                    data=dict(credential.data),
                    persisted=True,
                )
            )
        return stored
