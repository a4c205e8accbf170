import os
from typing import Dict, Any


def get_rabbitmq_config() -> Dict[str, Any]:
    """Get RabbitMQ configuration from environment variables"""
    return {
        "host": os.getenv("RABBITMQ_HOST", "localhost"),
        "port": int(os.getenv("RABBITMQ_PORT", 5672)),
        "vhost": os.getenv("RABBITMQ_VHOST", "/"),
        "username": os.getenv("RABBITMQ_USERNAME", "guest"),
        "password": os.getenv("RABBITMQ_PASSWORD", "guest"),
        "queue_name": os.getenv("RABBITMQ_QUEUE", "scheduling"),
        "events_exchange": os.getenv("EVENTS_EXCHANGE", "lecture.events"),
        "heartbeat": int(os.getenv("RABBITMQ_HEARTBEAT", 600)),
        "connection_attempts": int(os.getenv("RABBITMQ_CONNECTION_ATTEMPTS", 3)),
        "retry_delay": int(os.getenv("RABBITMQ_RETRY_DELAY", 5)),
    }


def get_app_config() -> Dict[str, Any]:
    """Get application configuration from environment variables"""
    return {
        "debug": os.getenv("DEBUG", "False").lower() == "true",
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "schedule_data_file": os.getenv("SCHEDULE_DATA_FILE", ""),
    }


def get_schedule_config() -> Dict[str, Any]:
    """Get working hours and slot sizes from environment variables"""
    return {
        "day_start": os.getenv("WORK_DAY_START", "09:00"),
        "day_end": os.getenv("WORK_DAY_END", "17:00"),
        "slot_step_minutes": int(os.getenv("SLOT_STEP_MINUTES", 30)),
        "availability_duration_minutes": int(os.getenv("AVAILABILITY_DURATION_MINUTES", 60)),
        "lecture_duration_minutes": int(os.getenv("LECTURE_DURATION_MINUTES", 90)),
    }
