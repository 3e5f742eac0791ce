from rollermon.alert import MonitorAlert, PublishInput


def test_create_alert():
    alert = MonitorAlert(error_message="error_message", topic_arn="topic_arn")
    message = alert.into_message()
    alert2 = MonitorAlert(error_message="error_message", topic_arn="topic_arn")
    assert message.message == alert2.error_message
    assert message.topic_arn == alert2.topic_arn


def test_alert_without_topic():
    message = MonitorAlert(error_message="error_message").into_message()
    assert message == PublishInput(message="error_message")
    assert message.topic_arn is None
    assert message.subject is None