import kafka
from pydantic import BaseModel

from common.topics.topics import Topic


class KafkaTopicValidationError(Exception):
    pass


def send_to_topic(
    producer: kafka.KafkaProducer, topic: Topic, message: BaseModel
) -> None:
    if not isinstance(message, topic.base_model):
        raise KafkaTopicValidationError(
            f"{type(message)=}, but topic {topic.name} accepts {topic.base_model}"
        )
    producer.send(topic.name, message.model_dump(mode="json"))
