"""
tests/attribution/classifiers/test_classifiers_instance.py - EC2 인스턴스 분류기 테스트
"""

from unittest.mock import MagicMock, patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from attribution.classifiers.base import MAX_FILTER_VALUES, chunked, get_name_tag
from attribution.classifiers.instance import PrivateInstanceClassifier, PublicInstanceClassifier, _InstanceClassifier
from attribution.types import RecordKind
from core.exceptions import APICallError


def _ec2_with_pages(pages):
    mock_ec2 = MagicMock()
    paginator = MagicMock()
    paginator.paginate.return_value = pages
    mock_ec2.get_paginator.return_value = paginator
    return mock_ec2


def _instance(instance_id="i-0123456789abcdef0", **fields):
    instance = {
        "InstanceId": instance_id,
        "State": {"Name": "running"},
        "VpcId": "vpc-1",
        "Tags": [{"Key": "Name", "Value": "web-01"}],
    }
    instance.update(fields)
    return {"Reservations": [{"Instances": [instance]}]}


class TestHelpers:
    """공통 헬퍼 테스트"""

    def test_chunked(self):
        values = [str(i) for i in range(450)]
        chunks = list(chunked(values))

        assert [len(c) for c in chunks] == [MAX_FILTER_VALUES, MAX_FILTER_VALUES, 50]
        assert list(chunked([])) == []

    def test_get_name_tag(self):
        assert get_name_tag([{"Key": "env", "Value": "prod"}, {"Key": "Name", "Value": "api"}]) == "api"
        assert get_name_tag(None) == ""


class TestPrivateInstanceClassifier:
    """PrivateInstanceClassifier 테스트"""

    def test_classify(self, mock_session):
        """사설 IP로 인스턴스 조회"""
        mock_ec2 = _ec2_with_pages([_instance(PrivateIpAddress="10.0.0.5")])

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2) as mock_get_client:
            records = PrivateInstanceClassifier(mock_session).classify("us-east-1", ["10.0.0.5", "10.0.0.6"])

        mock_get_client.assert_called_once_with(mock_session, "ec2", region_name="us-east-1")
        mock_ec2.get_paginator.assert_called_once_with("describe_instances")
        mock_ec2.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": "private-ip-address", "Values": ["10.0.0.5", "10.0.0.6"]}]
        )

        assert list(records) == ["10.0.0.5"]
        record = records["10.0.0.5"]
        assert record.kind == RecordKind.INSTANCE
        assert record.region == "us-east-1"
        assert record.resource_id == "i-0123456789abcdef0"
        assert record.name == "web-01"
        assert record.detail["state"] == "running"
        assert record.detail["source"] == "private-ip"

    def test_secondary_and_ipv6(self, mock_session):
        """보조 사설 IP와 IPv6 주소도 일치"""
        mock_ec2 = _ec2_with_pages(
            [
                _instance(
                    PrivateIpAddress="10.0.0.5",
                    NetworkInterfaces=[
                        {
                            "PrivateIpAddresses": [{"PrivateIpAddress": "10.0.0.5"}, {"PrivateIpAddress": "10.0.0.9"}],
                            "Ipv6Addresses": [{"Ipv6Address": "2600:1f18::1"}],
                        }
                    ],
                )
            ]
        )

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            records = PrivateInstanceClassifier(mock_session).classify("us-east-1", ["10.0.0.9", "2600:1f18::1"])

        assert set(records) == {"10.0.0.9", "2600:1f18::1"}
        calls = mock_ec2.get_paginator.return_value.paginate.call_args_list
        assert [c.kwargs["Filters"] for c in calls] == [
            [{"Name": "private-ip-address", "Values": ["10.0.0.9"]}],
            [{"Name": "network-interface.ipv6-addresses.ipv6-address", "Values": ["2600:1f18::1"]}],
        ]

    def test_ipv6_only(self, mock_session):
        """IPv6 주소는 ENI IPv6 필터로만 조회"""
        mock_ec2 = _ec2_with_pages(
            [_instance(NetworkInterfaces=[{"Ipv6Addresses": [{"Ipv6Address": "2600:1f18::7"}]}])]
        )

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            records = PrivateInstanceClassifier(mock_session).classify("us-east-1", ["2600:1f18::7"])

        mock_ec2.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": "network-interface.ipv6-addresses.ipv6-address", "Values": ["2600:1f18::7"]}]
        )
        assert records["2600:1f18::7"].resource_id == "i-0123456789abcdef0"

    def test_no_match(self, mock_session):
        """일치 항목이 없으면 빈 결과"""
        mock_ec2 = _ec2_with_pages([{"Reservations": []}])

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            assert PrivateInstanceClassifier(mock_session).classify("us-east-1", ["10.0.0.5"]) == {}

    def test_empty_batch(self, mock_session):
        """빈 배치는 원격 호출 없음"""
        with patch("attribution.classifiers.base.get_client") as mock_get_client:
            assert PrivateInstanceClassifier(mock_session).classify("us-east-1", []) == {}

        mock_get_client.assert_not_called()

    def test_error_propagates(self, mock_session):
        """원격 호출 실패는 예외로 전파"""
        mock_ec2 = MagicMock()
        mock_ec2.get_paginator.return_value.paginate.side_effect = ClientError(
            {"Error": {"Code": "UnauthorizedOperation", "Message": "denied"}}, "DescribeInstances"
        )

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            with pytest.raises(APICallError) as exc_info:
                PrivateInstanceClassifier(mock_session).classify("us-east-1", ["10.0.0.5"])

        error = exc_info.value
        assert error.service == "ec2"
        assert error.operation == "describe_instances"
        assert error.region == "us-east-1"
        assert error.error_code == "UnauthorizedOperation"
        assert isinstance(error.__cause__, ClientError)

    def test_large_batch_chunked(self, mock_session):
        """필터 값은 200개 단위로 분할"""
        mock_ec2 = _ec2_with_pages([])
        addresses = [f"10.0.{i // 250}.{i % 250}" for i in range(450)]

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            PrivateInstanceClassifier(mock_session).classify("us-east-1", addresses)

        calls = mock_ec2.get_paginator.return_value.paginate.call_args_list
        assert [len(c.kwargs["Filters"][0]["Values"]) for c in calls] == [200, 200, 50]

    def test_idempotent(self, mock_session):
        """같은 입력에 같은 결과"""
        page = _instance(PrivateIpAddress="10.0.0.5")
        mock_ec2 = _ec2_with_pages([page])

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            classifier = PrivateInstanceClassifier(mock_session)
            first = classifier.classify("us-east-1", ["10.0.0.5"])
            second = classifier.classify("us-east-1", ["10.0.0.5"])

        assert first == second


class TestPublicInstanceClassifier:
    """PublicInstanceClassifier 테스트"""

    def test_classify(self, mock_session):
        """공인 IP와 ENI 연결 공인 IP"""
        mock_ec2 = _ec2_with_pages(
            [
                _instance(
                    PublicIpAddress="54.1.2.3",
                    PrivateIpAddress="10.0.0.5",
                    NetworkInterfaces=[
                        {
                            "Association": {"PublicIp": "54.1.2.3"},
                            "PrivateIpAddresses": [
                                {"PrivateIpAddress": "10.0.0.7", "Association": {"PublicIp": "54.1.2.4"}}
                            ],
                        }
                    ],
                )
            ]
        )

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            records = PublicInstanceClassifier(mock_session).classify("us-west-1", ["54.1.2.3", "54.1.2.4", "10.0.0.5"])

        mock_ec2.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": "ip-address", "Values": ["10.0.0.5", "54.1.2.3", "54.1.2.4"]}]
        )
        assert set(records) == {"54.1.2.3", "54.1.2.4"}
        assert records["54.1.2.3"].detail["source"] == "public-ip"
        assert records["54.1.2.3"].region == "us-west-1"

    def test_ipv6_not_queried(self, mock_session):
        """ip-address 필터는 IPv4 전용"""
        mock_ec2 = _ec2_with_pages([])

        with patch("attribution.classifiers.base.get_client", return_value=mock_ec2):
            PublicInstanceClassifier(mock_session).classify("us-west-1", ["2600:1f18::1", "54.1.2.3"])

        mock_ec2.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": "ip-address", "Values": ["54.1.2.3"]}]
        )


class TestInstanceClassifierBase:
    """_InstanceClassifier 테스트"""

    def test_abstract(self, mock_session):
        """주소 추출을 구현하지 않으면 생성 불가"""
        with pytest.raises(TypeError):
            _InstanceClassifier(mock_session)

    def test_subclass_must_extract_addresses(self, mock_session):
        class NoAddresses(_InstanceClassifier):
            name = "ec2-none"
            filters = ((4, "ip-address"),)

        with pytest.raises(TypeError):
            NoAddresses(mock_session)


class TestInstanceClassifierMoto:
    """moto 기반 통합 테스트"""

    @mock_aws
    def test_private_instance(self, aws_credentials):
        session = boto3.Session(region_name="us-east-1")
        ec2 = session.client("ec2", region_name="us-east-1")
        vpc_id = ec2.create_vpc(CidrBlock="10.0.0.0/16")["Vpc"]["VpcId"]
        subnet_id = ec2.create_subnet(VpcId=vpc_id, CidrBlock="10.0.1.0/24")["Subnet"]["SubnetId"]
        images = ec2.describe_images(Owners=["amazon"])["Images"]
        instance = ec2.run_instances(
            ImageId=images[0]["ImageId"],
            MinCount=1,
            MaxCount=1,
            SubnetId=subnet_id,
            TagSpecifications=[{"ResourceType": "instance", "Tags": [{"Key": "Name", "Value": "moto-web"}]}],
        )["Instances"][0]
        private_ip = instance["PrivateIpAddress"]

        records = PrivateInstanceClassifier(session).classify("us-east-1", [private_ip, "10.0.9.9"])

        assert list(records) == [private_ip]
        assert records[private_ip].resource_id == instance["InstanceId"]
        assert records[private_ip].name == "moto-web"
