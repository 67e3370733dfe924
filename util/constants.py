class PipelineCommands:
    INVOKE = "/invoke"

    HEALTH = "get_health"
    GET_CONFIG = "get_config"
    CONFIG_INITIALIZED = "get_config_initialized"

    LIST_JOBS = "list_jobs"
    GET_JOB = "get_job"
    CREATE_JOB_FROM_PATH = "create_job_from_path"
    CANCEL_JOB = "cancel_job"
    DELETE_JOB = "delete_job"
    EXPORT_JOB = "export_to_obsidian"

    GET_SUMMARY = "get_summary"
    SUMMARIZE_JOB = "summarize_job"

    MODEL_SIZE = "get_model_size"
    MODEL_DOWNLOAD_STATUS = "get_model_download_status"
    START_MODEL_DOWNLOAD = "start_model_download"
    MODEL_INSTALLED = "get_model_installed"

    ENGINE_DOWNLOAD_STATUS = "get_whisper_download_status"
    START_ENGINE_DOWNLOAD = "start_whisper_download"
    ENGINE_INSTALLED = "get_whisper_installed"
    LATEST_ENGINE_RELEASE_URL = "get_latest_whisper_release_url"


class Limits:
    LOG_CAPACITY = 2000
    SUPPORTED_AUDIO_EXTENSIONS = (".mp3", ".m4a", ".wav")
