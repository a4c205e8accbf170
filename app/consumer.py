import functools
import json
import logging
import pika
import time
from typing import Dict, Any, Optional

from config.settings import get_app_config, get_rabbitmq_config, get_schedule_config
from app.errors import SchedulingError, ValidationError
from app.services import scheduler
from app.services.schedule_store import ScheduleStore
from app.models.classroom import Classroom
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.lecture import CONFIRMED, ROLES, Lecture
from app.models.lecture_event import LectureChanged
from app.models.student import Student
from app.models.teacher import Teacher
from app.utils.utils import subject_color, working_hours_from_config

logger = logging.getLogger(__name__)


def parse_schedule_data(data: Dict[str, Any], schedule_config: Optional[Dict[str, Any]] = None) -> ScheduleStore:
    """
    Converts JSON schedule data into a ScheduleStore.

    Args:
        data: Dictionary with the timetable and its directories
        schedule_config: Working hours settings, defaults to the environment

    Expected format:
    {
        "teachers": [{"id": "T1", "full_name": "Dr. Alan Grant", "department": "Physics"}, ...],
        "classrooms": [{"id": "Room101", "name": "Room 101", "capacity": 40}, ...],
        "students": [{"id": "S1", "name": "Ada Lovelace", "department": "Computer Science"}, ...],
        "courses": [{"code": "CS305", "subject": "Machine Learning",
                     "department": "Computer Science", "elective": true}, ...],
        "lectures": [{"id": "L1", "subject": "Quantum Physics", "code": "PHY301",
                      "teacherId": "T1", "classroomId": "Room101", "day": "Monday",
                      "startTime": "10:00", "endTime": "11:30", "status": "confirmed",
                      "students": [{"studentId": "S1", "attendanceRate": 0.9,
                                    "missedSessions": 1}],
                      "elective": false, "forRoles": ["admin", "teacher", "student"]}, ...]
    }

    Returns:
        ScheduleStore holding the parsed records
    """
    schedule_config = schedule_config or get_schedule_config()

    try:
        teachers = [
            Teacher(id=t["id"], full_name=t["full_name"], department=t.get("department", "General"))
            for t in data.get("teachers", [])
        ]
        classrooms = [
            Classroom(id=c["id"], name=c.get("name", c["id"]), capacity=c.get("capacity", 0))
            for c in data.get("classrooms", [])
        ]
        students = [
            Student(id=s["id"], name=s["name"], department=s.get("department", "General"))
            for s in data.get("students", [])
        ]
        courses = [
            Course(
                code=c["code"],
                subject=c["subject"],
                department=c.get("department", "General"),
                elective=c.get("elective", False),
                description=c.get("description", ""),
            )
            for c in data.get("courses", [])
        ]

        lectures = []
        for lecture in data.get("lectures", []):
            lectures.append(Lecture(
                id=lecture["id"],
                subject=lecture["subject"],
                code=lecture.get("code", ""),
                teacher_id=lecture["teacherId"],
                classroom_id=lecture["classroomId"],
                day=lecture["day"],
                start_time=lecture["startTime"],
                end_time=lecture["endTime"],
                status=lecture.get("status", CONFIRMED),
                students=[
                    Enrollment(
                        student_id=s["studentId"],
                        attendance_rate=s.get("attendanceRate", 1.0),
                        missed_sessions=s.get("missedSessions", 0),
                    )
                    for s in lecture.get("students", [])
                ],
                elective=lecture.get("elective", False),
                for_roles=lecture.get("forRoles", list(ROLES)),
            ))
    except KeyError as e:
        raise ValidationError(f"Missing field in schedule data: {e.args[0]}", field=e.args[0])

    return ScheduleStore(
        teachers=teachers,
        classrooms=classrooms,
        students=students,
        courses=courses,
        lectures=lectures,
        hours=working_hours_from_config(schedule_config),
        lecture_duration=schedule_config["lecture_duration_minutes"],
    )


def load_store(app_config: Dict[str, Any], schedule_config: Dict[str, Any]) -> ScheduleStore:
    """Builds the store from SCHEDULE_DATA_FILE, or an empty one if it is not set"""
    path = app_config.get("schedule_data_file")
    if not path:
        logger.info("No SCHEDULE_DATA_FILE configured, starting with an empty schedule")
        return parse_schedule_data({}, schedule_config)

    with open(path, encoding="utf-8") as f:
        store = parse_schedule_data(json.load(f), schedule_config)
    logger.info(f"Schedule loaded from {path}: {len(store.lectures())} lectures")
    return store


def process_request(state: Dict[str, Any], command: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Runs one scheduling request against the current store.

    Args:
        state: Holds the live "store" and the "schedule_config"
        command: Message pattern
        data: Message payload

    Returns:
        Dictionary with the reply to send back
    """
    store: ScheduleStore = state["store"]
    schedule_config = state["schedule_config"]
    availability_duration = schedule_config["availability_duration_minutes"]

    try:
        if command == "load_schedule":
            new_store = parse_schedule_data(data, schedule_config)
            for listener in state.get("listeners", []):
                new_store.subscribe(listener)
            state["store"] = new_store
            logger.info(f"Schedule replaced: {len(new_store.lectures())} lectures")
            result = {"lectures": len(new_store.lectures())}

        elif command == "list_lectures":
            lectures = store.filter_lectures(
                subject=data.get("subject"),
                teacher=data.get("teacher"),
                day=data.get("day"),
                role=data.get("role"),
            )
            subjects = [lecture.subject for lecture in lectures]
            result = [
                dict(lecture.as_dict(), color=subject_color(lecture.subject, subjects))
                for lecture in lectures
            ]

        elif command == "find_available":
            slots = scheduler.find_available(
                store.snapshot(),
                room=data.get("room"),
                instructor=data.get("instructor"),
                duration=availability_duration,
                hours=store.hours,
            )
            result = {"availableSlots": [slot.as_dict() for slot in slots]}

        elif command == "schedule_lecture":
            if data.get("commit"):
                lecture = store.create_lecture(
                    subject=data.get("subject"),
                    code=data.get("code", ""),
                    teacher_id=data.get("teacher"),
                    classroom_id=data.get("classroom"),
                    elective=data.get("elective", False),
                )
                result = {"success": True, "lecture": lecture.as_dict()}
            else:
                result = scheduler.schedule_new(
                    store.snapshot(),
                    subject=data.get("subject"),
                    teacher=data.get("teacher"),
                    classroom=data.get("classroom"),
                    duration=store.lecture_duration,
                    hours=store.hours,
                ).as_dict()

        elif command == "find_reschedule_slots":
            student_ids = data.get("studentIds", [])
            if not isinstance(student_ids, list):
                raise ValidationError("studentIds must be a list of student ids.", field="studentIds")
            slots = scheduler.find_reschedule_slots(
                store.snapshot(),
                teacher=data.get("teacher"),
                classroom=data.get("classroom"),
                student_ids=student_ids,
                duration=store.lecture_duration,
                hours=store.hours,
                exclude_lecture_id=data.get("lectureId"),
            )
            result = {"availableSlots": [slot.as_dict() for slot in slots]}

        elif command == "can_enroll":
            result = {"canEnroll": scheduler.can_enroll(
                store.snapshot(), data.get("studentId"), data.get("lectureId")
            )}

        elif command == "enroll":
            result = store.enroll(data.get("studentId"), data.get("lectureId")).as_dict()

        elif command == "cancel_lecture":
            result = store.cancel_lecture(data.get("lectureId")).as_dict()

        elif command == "reschedule_lecture":
            result = store.reschedule_lecture(
                data.get("lectureId"),
                day=data.get("dayOfWeek"),
                start_time=data.get("startTime"),
                end_time=data.get("endTime"),
            ).as_dict()

        elif command == "available_electives":
            result = [lecture.as_dict() for lecture in store.available_electives(data.get("studentId"))]

        else:
            return {"status": "error", "error": "unknown_command", "message": f"Unknown command: {command}"}

    except SchedulingError as e:
        logger.info(f"Request {command} rejected: {e.kind}: {e.message}")
        return e.as_dict()

    except Exception as e:
        logger.error(f"Error processing {command}: {e}", exc_info=True)
        return {"status": "error", "error": "internal", "message": f"Error processing {command}: {str(e)}"}

    return {"status": "success", "data": result}


def publish_event(channel, exchange: str, event: LectureChanged):
    """Publishes a lecture change to the events exchange"""
    channel.basic_publish(
        exchange=exchange,
        routing_key=event.kind,
        properties=pika.BasicProperties(content_type="application/json"),
        body=json.dumps(event.as_dict()),
    )
    logger.info(f"Published {event.kind} event for lecture {event.lecture_id}")


def callback(ch, method, properties, body, state=None):
    """Message callback - runs the request and replies on reply_to"""
    correlation_id = properties.correlation_id

    try:
        logger.info(f"Received message: {correlation_id}")
        message = json.loads(body)
        command = message.get("pattern")

        if command == "test_connection":
            result = {"status": "success", "message": "Connection established"}
        else:
            logger.info(f"Processing {command} request")
            result = process_request(state, command, message.get("data") or {})

        if properties.reply_to:
            ch.basic_publish(
                exchange="",
                routing_key=properties.reply_to,
                properties=pika.BasicProperties(correlation_id=correlation_id),
                body=json.dumps(result),
            )
            logger.info(f"Response sent for correlation_id: {correlation_id}")

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in message: {e}")

    except Exception as e:
        logger.error(f"Unexpected error in callback: {e}", exc_info=True)

    finally:
        try:
            ch.basic_ack(delivery_tag=method.delivery_tag)
        except Exception as e:
            logger.warning(f"Error acknowledging message: {e}")


def create_connection_and_channel(rabbitmq_config):
    """Create RabbitMQ connection and channel with proper configuration"""
    connection_params = pika.ConnectionParameters(
        host=rabbitmq_config["host"],
        port=rabbitmq_config["port"],
        virtual_host=rabbitmq_config["vhost"],
        credentials=pika.PlainCredentials(
            username=rabbitmq_config["username"], password=rabbitmq_config["password"]
        ),
        heartbeat=rabbitmq_config["heartbeat"],
        blocked_connection_timeout=300,
        socket_timeout=10,
        connection_attempts=rabbitmq_config["connection_attempts"],
        retry_delay=rabbitmq_config["retry_delay"],
    )

    connection = pika.BlockingConnection(connection_params)
    channel = connection.channel()

    # Configure channel
    queue_name = rabbitmq_config["queue_name"]
    channel.queue_declare(queue=queue_name, durable=True)
    channel.exchange_declare(
        exchange=rabbitmq_config["events_exchange"], exchange_type="fanout", durable=True
    )
    channel.basic_qos(prefetch_count=1)

    return connection, channel, queue_name


def start_consumer():
    """Start the RabbitMQ consumer with improved reconnection logic"""
    rabbitmq_config = get_rabbitmq_config()
    schedule_config = get_schedule_config()
    state = {
        "store": load_store(get_app_config(), schedule_config),
        "schedule_config": schedule_config,
        "listeners": [],
    }
    # The listener publishes on whichever channel is current after reconnects
    current = {"channel": None}

    def on_lecture_changed(event: LectureChanged):
        if current["channel"] is not None:
            publish_event(current["channel"], rabbitmq_config["events_exchange"], event)

    state["listeners"].append(on_lecture_changed)
    state["store"].subscribe(on_lecture_changed)

    max_reconnect_attempts = 10
    reconnect_delay = 5
    current_attempt = 0

    while current_attempt < max_reconnect_attempts:
        connection = None
        channel = None

        try:
            logger.info(
                f"Starting consumer (attempt {current_attempt + 1}/{max_reconnect_attempts})"
            )

            connection, channel, queue_name = create_connection_and_channel(
                rabbitmq_config
            )
            current["channel"] = channel

            # Reset attempt counter on successful connection
            current_attempt = 0

            channel.basic_consume(
                queue=queue_name,
                on_message_callback=functools.partial(callback, state=state),
            )

            logger.info(f"Consumer started, listening on queue: {queue_name}")
            channel.start_consuming()

        except pika.exceptions.StreamLostError as e:
            logger.error(
                f"Connection lost: {e}. Attempt {current_attempt + 1}/{max_reconnect_attempts}"
            )
            current_attempt += 1

        except pika.exceptions.AMQPConnectionError as e:
            logger.error(
                f"AMQP Connection error: {e}. Attempt {current_attempt + 1}/{max_reconnect_attempts}"
            )
            current_attempt += 1

        except KeyboardInterrupt:
            logger.info("Shutdown signal received, stopping consumer...")
            break

        except Exception as e:
            logger.error(
                f"Unexpected error: {e}. Attempt {current_attempt + 1}/{max_reconnect_attempts}",
                exc_info=True,
            )
            current_attempt += 1

        finally:
            current["channel"] = None
            try:
                if channel and not channel.is_closed:
                    channel.stop_consuming()
                    channel.close()
            except Exception as e:
                logger.warning(f"Error closing channel: {e}")

            try:
                if connection and not connection.is_closed:
                    connection.close()
            except Exception as e:
                logger.warning(f"Error closing connection: {e}")

        if current_attempt < max_reconnect_attempts:
            logger.info(f"Reconnecting in {reconnect_delay} seconds...")
            time.sleep(reconnect_delay)
            # Exponential backoff with max delay of 60 seconds
            reconnect_delay = min(reconnect_delay * 1.5, 60)

    logger.error(
        f"Max reconnection attempts ({max_reconnect_attempts}) reached. Exiting."
    )


if __name__ == "__main__":
    start_consumer()
